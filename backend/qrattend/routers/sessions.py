"""
Router pour les sessions de cours (côté enseignant).
Ouverture, QR codes, roster, vue des présences, correction et clôture.
Les erreurs métier sont traduites en codes HTTP par les handlers de main.py.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qrattend.clock import Clock
from qrattend.database import get_db
from qrattend.dependencies import (
    get_clock,
    get_closer,
    get_current_teacher_id,
    get_image_store,
)
from qrattend.repositories.session_store import SessionStore
from qrattend.schemas.attendance import (
    AttendanceCorrection,
    AttendanceResponse,
    ClosureReport,
    SessionAttendance,
)
from qrattend.schemas.qrcode import QRCodeResponse
from qrattend.schemas.session import (
    SessionCreate,
    SessionEnrolment,
    SessionEnrolmentResult,
    SessionResponse,
)
from qrattend.services import session_service
from qrattend.services.qr_image_service import ImageStore
from qrattend.services.session_closer import SessionCloser

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])


@router.post("", response_model=SessionResponse, status_code=201, summary="Ouvrir une session")
def create_session(
    data: SessionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """Ouvre une session dont l'enseignant authentifié devient propriétaire."""
    return session_service.create_session(db, data, teacher_id, clock)


@router.get("", response_model=List[SessionResponse], summary="Lister les sessions")
def list_sessions(
    mine: bool = False,
    db: Session = Depends(get_db),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """Retourne toutes les sessions, ou seulement celles de l'enseignant si `mine=true`."""
    return session_service.list_sessions(db, teacher_id if mine else None)


@router.get("/{session_id}", response_model=SessionResponse, summary="Détail d'une session")
def get_session(session_id: uuid.UUID, db: Session = Depends(get_db)):
    return session_service.get_session(db, session_id)


@router.post(
    "/{session_id}/students",
    response_model=SessionEnrolmentResult,
    summary="Inscrire des élèves à la session",
)
def enrol_students(
    session_id: uuid.UUID,
    data: SessionEnrolment,
    db: Session = Depends(get_db),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """
    Définit un roster explicite pour la session.
    Sans inscription, tous les élèves du système sont attendus à la clôture.
    """
    return session_service.enrol_students(db, session_id, data, teacher_id)


@router.post(
    "/{session_id}/qrcodes",
    response_model=QRCodeResponse,
    status_code=201,
    summary="Émettre un QR code pour la session",
)
def create_qr_code(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    image_store: ImageStore = Depends(get_image_store),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """
    Génère un code à 6 chiffres unique, valable 3 heures, et son image QR.

    Retourne 404 si la session est introuvable, 403 si elle appartient à un autre
    enseignant, 409 si elle est clôturée, 503 si aucun code libre n'a été trouvé.
    """
    return session_service.issue_qr_code(db, session_id, teacher_id, clock, image_store)


@router.get(
    "/{session_id}/attendances",
    response_model=SessionAttendance,
    summary="Présences de la session",
)
def get_session_attendance(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """
    Retourne chaque élève du roster avec son statut (null = pas encore scanné).
    Retourne 404 si la session est introuvable, 403 si elle appartient à un autre enseignant.
    """
    return session_service.get_session_attendance(db, session_id, teacher_id)


@router.put(
    "/{session_id}/attendances/{student_id}",
    response_model=AttendanceResponse,
    summary="Corriger le statut d'un élève",
)
def correct_attendance(
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    data: AttendanceCorrection,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """
    Remplace le statut existant (PRESENT, LATE ou ABSENT).
    Seule voie de modification d'un enregistrement ; 404 si l'élève n'en a aucun.
    """
    return session_service.correct_attendance(db, session_id, student_id, data.status, teacher_id, clock)


@router.post(
    "/{session_id}/close",
    response_model=ClosureReport,
    summary="Clôturer la session",
)
def close_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    closer: SessionCloser = Depends(get_closer),
    teacher_id: uuid.UUID = Depends(get_current_teacher_id),
):
    """
    Marque ABSENT chaque élève du roster sans enregistrement, puis clôture la session.

    Idempotent : une seconde clôture ne crée aucune absence.
    Les échecs individuels sont listés dans `failed_student_ids`.
    """
    session_service.owned_session(SessionStore(db), session_id, teacher_id)
    return closer.close_session(session_id)
