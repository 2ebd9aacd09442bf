"""
Schémas Pydantic pour le registre des présences et la clôture de session.
"""

import enum
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from qrattend.models.attendance import AttendanceStatus


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    student_id: uuid.UUID
    status: AttendanceStatus
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class AttendanceCorrection(BaseModel):
    """Correction manuelle d'un statut par l'enseignant (contourne l'évaluateur)."""
    status: AttendanceStatus


class StudentAttendance(BaseModel):
    """Ligne du roster d'une session avec le statut de l'élève (None = pas encore scanné)."""
    student_id: uuid.UUID
    first_name: str
    last_name: str
    status: Optional[AttendanceStatus]


class SessionAttendance(BaseModel):
    session_id: uuid.UUID
    is_closed: bool
    present_count: int
    late_count: int
    absent_count: int
    unscanned_count: int
    students: List[StudentAttendance]


class CloseOutcome(str, enum.Enum):
    CLOSED = "CLOSED"


class ClosureReport(BaseModel):
    """Rapport de clôture : absences créées et échecs individuels éventuels."""
    session_id: uuid.UUID
    outcome: CloseOutcome = CloseOutcome.CLOSED
    absent_created: int
    already_recorded: int
    failed_student_ids: List[uuid.UUID]
    already_closed: bool
