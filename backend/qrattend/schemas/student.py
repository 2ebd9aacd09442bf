"""
Schémas Pydantic pour les élèves (roster global).
"""

import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator


class StudentCreate(BaseModel):
    """Schéma de création d'un élève (POST /students)."""
    first_name: str
    last_name: str
    email: Optional[EmailStr] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class StudentResponse(BaseModel):
    """Schéma de réponse pour un élève (GET /students)."""
    id: uuid.UUID
    first_name: str
    last_name: str
    email: Optional[str]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
