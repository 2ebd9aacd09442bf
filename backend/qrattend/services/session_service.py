"""
Service métier côté enseignant : ouverture des sessions, émission des QR codes,
roster explicite, vue des présences et correction manuelle.

Flux d'émission d'un QR code :
  1. Vérifier que la session existe, est ouverte et appartient à l'enseignant
  2. Tirer un code à 6 chiffres libre (CodeGenerator, tentatives bornées)
  3. Créer le QR code (expired_at = created_at + validité)
  4. Générer l'image et la publier ; un échec est journalisé, le code reste valide
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from qrattend.clock import Clock
from qrattend.config import Settings, settings as default_settings
from qrattend.exceptions import ForbiddenError
from qrattend.models.attendance import AttendanceStatus
from qrattend.models.person import Student
from qrattend.models.session import AttendanceSession
from qrattend.repositories.attendance_ledger import AttendanceLedger
from qrattend.repositories.roster import RosterProvider
from qrattend.repositories.session_store import SessionStore
from qrattend.schemas.attendance import (
    AttendanceResponse,
    SessionAttendance,
    StudentAttendance,
)
from qrattend.schemas.qrcode import QRCodeResponse
from qrattend.schemas.session import (
    SessionCreate,
    SessionEnrolment,
    SessionEnrolmentResult,
    SessionResponse,
)
from qrattend.services.code_generator import CodeGenerator
from qrattend.services.qr_image_service import ImageStore, build_target_url, publish_qr_image

logger = logging.getLogger(__name__)


def owned_session(store: SessionStore, session_id: uuid.UUID, teacher_id: uuid.UUID) -> AttendanceSession:
    """
    Retourne la session si elle appartient à l'enseignant.
    Lève NotFoundError si elle est introuvable, ForbiddenError sinon.
    """
    session = store.get_session(session_id)
    if session.teacher_id != teacher_id:
        raise ForbiddenError("Cette session appartient à un autre enseignant.")
    return session


def create_session(
    db: Session,
    data: SessionCreate,
    teacher_id: uuid.UUID,
    clock: Clock,
) -> SessionResponse:
    """Ouvre une nouvelle session pour l'enseignant authentifié."""
    session = SessionStore(db).create_session(data.title, teacher_id, clock.now())
    logger.info("Session %s ouverte par l'enseignant %s", session.id, teacher_id)
    return SessionResponse.model_validate(session)


def list_sessions(db: Session, teacher_id: Optional[uuid.UUID] = None) -> List[SessionResponse]:
    """Retourne les sessions, de la plus récente à la plus ancienne."""
    return [SessionResponse.model_validate(s) for s in SessionStore(db).list_sessions(teacher_id)]


def get_session(db: Session, session_id: uuid.UUID) -> SessionResponse:
    return SessionResponse.model_validate(SessionStore(db).get_session(session_id))


def enrol_students(
    db: Session,
    session_id: uuid.UUID,
    data: SessionEnrolment,
    teacher_id: uuid.UUID,
) -> SessionEnrolmentResult:
    """Inscrit des élèves à la session : le roster de clôture se limite alors à eux."""
    store = SessionStore(db)
    owned_session(store, session_id, teacher_id)
    added = store.enrol_students(session_id, data.student_ids)
    logger.info("Session %s : %d élèves inscrits", session_id, added)
    return SessionEnrolmentResult(session_id=session_id, enrolled_count=added)


def issue_qr_code(
    db: Session,
    session_id: uuid.UUID,
    teacher_id: uuid.UUID,
    clock: Clock,
    image_store: ImageStore,
    config: Settings = default_settings,
) -> QRCodeResponse:
    """
    Émet un nouveau QR code pour la session.

    Lève NotFoundError (session introuvable), ForbiddenError (autre enseignant),
    ConflictError (session clôturée) ou ResourceExhaustedError (aucun code libre).
    """
    store = SessionStore(db)
    owned_session(store, session_id, teacher_id)

    generator = CodeGenerator(
        store.code_in_use,
        low=config.CODE_MIN,
        high=config.CODE_MAX,
        max_attempts=config.CODE_MAX_ATTEMPTS,
    )
    qr_code = store.create_qr_code(session_id, generator.generate(), config.qr_validity, clock.now())
    logger.info("QR code %s (code %s) créé pour la session %s", qr_code.id, qr_code.code, session_id)

    target_url = build_target_url(
        config.QR_TARGET_URL,
        qrcode_id=str(qr_code.id),
        code=qr_code.code,
        session_id=str(session_id),
    )
    try:
        image_url = publish_qr_image(image_store, target_url, f"{qr_code.code}_{session_id}.png")
    except Exception as exc:
        logger.error("Échec du rendu de l'image du QR code %s : %s", qr_code.id, exc)
    else:
        qr_code = store.set_qr_image(qr_code, image_url)

    return QRCodeResponse.model_validate(qr_code)


def get_qr_code(db: Session, qrcode_id: uuid.UUID) -> QRCodeResponse:
    return QRCodeResponse.model_validate(SessionStore(db).get_qr_code(qrcode_id))


def get_session_attendance(db: Session, session_id: uuid.UUID, teacher_id: uuid.UUID) -> SessionAttendance:
    """
    Vue enseignant : chaque élève du roster avec son statut.
    Réservée à l'enseignant propriétaire de la session (ForbiddenError sinon).
    Les élèves ayant un enregistrement hors roster (roster modifié après coup) sont inclus.
    """
    store = SessionStore(db)
    session = owned_session(store, session_id, teacher_id)
    records = {r.student_id: r.status for r in AttendanceLedger(db).list_by_session(session_id)}
    student_ids = RosterProvider(db, store).student_ids(session_id) | set(records)

    students = []
    if student_ids:
        students = db.execute(
            select(Student)
            .where(Student.id.in_(list(student_ids)))
            .order_by(Student.last_name, Student.first_name)
        ).scalars().all()

    rows = [
        StudentAttendance(
            student_id=s.id,
            first_name=s.first_name,
            last_name=s.last_name,
            status=records.get(s.id),
        )
        for s in students
    ]
    statuses = list(records.values())

    return SessionAttendance(
        session_id=session_id,
        is_closed=session.is_closed,
        present_count=statuses.count(AttendanceStatus.PRESENT),
        late_count=statuses.count(AttendanceStatus.LATE),
        absent_count=statuses.count(AttendanceStatus.ABSENT),
        unscanned_count=sum(1 for row in rows if row.status is None),
        students=rows,
    )


def correct_attendance(
    db: Session,
    session_id: uuid.UUID,
    student_id: uuid.UUID,
    status: AttendanceStatus,
    teacher_id: uuid.UUID,
    clock: Clock,
) -> AttendanceResponse:
    """
    Correction explicite d'un statut par l'enseignant propriétaire.
    Contourne l'évaluateur ; lève NotFoundError si l'élève n'a aucun enregistrement.
    """
    owned_session(SessionStore(db), session_id, teacher_id)
    record = AttendanceLedger(db).update_status(session_id, student_id, status, clock.now())
    return AttendanceResponse.model_validate(record)
