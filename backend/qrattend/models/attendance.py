"""
Modèle SQLAlchemy pour le registre des présences.

Un seul enregistrement par couple (session, élève) : la contrainte d'unicité
en base est la garantie ultime, quel que soit le nombre d'instances de l'API.
"""

import enum
import uuid
from sqlalchemy import Column, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid

from qrattend.database import Base


class AttendanceStatus(str, enum.Enum):
    """Statut unique d'un élève pour une session (exactement une valeur active)."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    ABSENT = "ABSENT"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_attendance_session_student"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid(as_uuid=True), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(AttendanceStatus, name="attendance_status", native_enum=False, length=10),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)  # Renseigné par une correction enseignant
