"""
Dépendances FastAPI partagées : horloge, stockage d'images, identité
authentifiée et assemblage des composants de présence.

L'identité est fournie par le service d'authentification en amont
(en-têtes X-Student-Id / X-Teacher-Id) et utilisée telle quelle.
"""

import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from qrattend.clock import Clock
from qrattend.config import settings
from qrattend.database import get_db
from qrattend.repositories.attendance_ledger import AttendanceLedger
from qrattend.repositories.roster import RosterProvider
from qrattend.repositories.session_store import SessionStore
from qrattend.services.attendance_evaluator import AttendanceEvaluator
from qrattend.services.qr_image_service import ImageStore, LocalImageStore
from qrattend.services.session_closer import SessionCloser

_clock = Clock()


def get_clock() -> Clock:
    return _clock


def get_image_store() -> ImageStore:
    return LocalImageStore(settings.QR_IMAGE_DIR, settings.QR_IMAGE_BASE_URL)


def _parse_identity(value: Optional[str], header: str) -> uuid.UUID:
    if not value:
        raise HTTPException(status_code=401, detail=f"En-tête {header} manquant.")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"En-tête {header} invalide.")


def get_current_student_id(x_student_id: Optional[str] = Header(default=None)) -> uuid.UUID:
    return _parse_identity(x_student_id, "X-Student-Id")


def get_current_teacher_id(x_teacher_id: Optional[str] = Header(default=None)) -> uuid.UUID:
    return _parse_identity(x_teacher_id, "X-Teacher-Id")


def get_evaluator(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> AttendanceEvaluator:
    return AttendanceEvaluator(
        SessionStore(db),
        AttendanceLedger(db),
        clock,
        grace_period=settings.grace_period,
    )


def build_closer(db: Session, clock: Clock) -> SessionCloser:
    store = SessionStore(db)
    return SessionCloser(store, AttendanceLedger(db), RosterProvider(db, store), clock)


def get_closer(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> SessionCloser:
    return build_closer(db, clock)
