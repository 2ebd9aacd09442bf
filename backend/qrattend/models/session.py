"""
Modèles SQLAlchemy pour les sessions de cours et leurs QR codes.

Une session appartient à l'enseignant qui l'a créée (titre et propriétaire immuables).
Elle reçoit des QR codes au fil du temps ; en pratique un seul est actif.
"""

import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, String, Uuid

from qrattend.database import Base


class AttendanceSession(Base):
    """Fenêtre de présence ouverte par un enseignant pour une séance de cours."""
    __tablename__ = "sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    teacher_id = Column(Uuid(as_uuid=True), nullable=False, index=True)  # Fourni par le service d'identité
    created_at = Column(DateTime(timezone=True), nullable=False)
    is_closed = Column(Boolean, nullable=False, default=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)


class SessionStudent(Base):
    """Inscription optionnelle d'un élève à une session (roster explicite)."""
    __tablename__ = "session_students"

    session_id = Column(Uuid(as_uuid=True), ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), primary_key=True)


class QRCode(Base):
    """QR code à durée limitée ; le code numérique est unique dans tout le système."""
    __tablename__ = "qr_codes"
    __table_args__ = (
        CheckConstraint("expired_at > created_at", name="ck_qr_codes_expiry_after_creation"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(Uuid(as_uuid=True), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(6), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expired_at = Column(DateTime(timezone=True), nullable=False)
    image_url = Column(String(500), nullable=True)  # Référence renvoyée par le stockage d'images
