"""
Schémas Pydantic pour le scan d'un QR code par un élève.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from qrattend.models.attendance import AttendanceStatus


class ScanOutcome(str, enum.Enum):
    """Issue d'un scan. NOT_FOUND n'apparaît pas ici : il est levé en NotFoundError (404)."""

    PRESENT = "PRESENT"
    LATE = "LATE"
    EXPIRED = "EXPIRED"
    ALREADY_RECORDED = "ALREADY_RECORDED"


SCAN_MESSAGES = {
    ScanOutcome.PRESENT: "Scan réussi, vous êtes à l'heure.",
    ScanOutcome.LATE: "Scan réussi, mais vous êtes en retard.",
    ScanOutcome.EXPIRED: "QR code expiré.",
    ScanOutcome.ALREADY_RECORDED: "Présence déjà enregistrée.",
}


class ScanCodeRequest(BaseModel):
    """Saisie manuelle du code à 6 chiffres affiché sous le QR code."""
    code: str

    @field_validator("code")
    @classmethod
    def six_digits(cls, v: str) -> str:
        v = v.strip()
        if len(v) != 6 or not v.isdigit():
            raise ValueError("Le code doit comporter exactement 6 chiffres.")
        return v


class ScanResult(BaseModel):
    """Résultat d'un scan retourné à l'élève."""
    outcome: ScanOutcome
    message: str
    session_id: uuid.UUID
    qrcode_id: uuid.UUID
    student_id: uuid.UUID
    status: Optional[AttendanceStatus]  # Statut enregistré (existant ou nouveau), None si EXPIRED
    scanned_at: datetime
