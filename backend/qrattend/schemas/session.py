"""
Schémas Pydantic pour les sessions de cours.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class SessionCreate(BaseModel):
    """Données nécessaires pour ouvrir une session."""
    title: str

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le titre de la session ne peut pas être vide.")
        return v.strip()


class SessionResponse(BaseModel):
    """Réponse renvoyée après création ou lecture d'une session."""
    id: uuid.UUID
    title: str
    teacher_id: uuid.UUID
    created_at: datetime
    is_closed: bool
    closed_at: Optional[datetime]

    model_config = {"from_attributes": True}


class SessionEnrolment(BaseModel):
    """Liste d'élèves à inscrire explicitement à une session."""
    student_ids: List[uuid.UUID]

    @field_validator("student_ids")
    @classmethod
    def not_empty(cls, v: List[uuid.UUID]) -> List[uuid.UUID]:
        if not v:
            raise ValueError("Au moins un élève doit être fourni.")
        return v


class SessionEnrolmentResult(BaseModel):
    session_id: uuid.UUID
    enrolled_count: int
