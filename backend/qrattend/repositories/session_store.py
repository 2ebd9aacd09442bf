"""
Dépôt des sessions et des QR codes associés.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable, Iterator, List, Optional, Set

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qrattend.exceptions import ConflictError, NotFoundError
from qrattend.models.session import AttendanceSession, QRCode, SessionStudent
from qrattend.repositories import storage_errors


class SessionStore:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------

    def create_session(self, title: str, teacher_id: uuid.UUID, now: datetime) -> AttendanceSession:
        session = AttendanceSession(title=title, teacher_id=teacher_id, created_at=now, is_closed=False)
        with storage_errors(self.db):
            self.db.add(session)
            self.db.commit()
            self.db.refresh(session)
        return session

    def get_session(self, session_id: uuid.UUID) -> AttendanceSession:
        with storage_errors(self.db):
            session = self.db.get(AttendanceSession, session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} introuvable.")
        return session

    def list_sessions(self, teacher_id: Optional[uuid.UUID] = None) -> Iterator[AttendanceSession]:
        """
        Parcourt les sessions de la plus récente à la plus ancienne.

        Itération paresseuse par lots : chaque appel relance une nouvelle requête,
        le parcours peut donc être recommencé à volonté.
        """
        stmt = select(AttendanceSession).order_by(AttendanceSession.created_at.desc())
        if teacher_id is not None:
            stmt = stmt.where(AttendanceSession.teacher_id == teacher_id)
        with storage_errors(self.db):
            result = self.db.execute(stmt.execution_options(yield_per=100)).scalars()
            yield from result

    def close_session(self, session_id: uuid.UUID, now: Optional[datetime] = None) -> bool:
        """
        Marque la session comme clôturée. Idempotent.
        Retourne True si la session vient d'être clôturée, False si elle l'était déjà.
        """
        session = self.get_session(session_id)
        if session.is_closed:
            return False
        session.is_closed = True
        session.closed_at = now or datetime.now(timezone.utc)
        with storage_errors(self.db):
            self.db.commit()
        return True

    def list_expired_open_sessions(self, now: datetime) -> List[AttendanceSession]:
        """Sessions ouvertes ayant au moins un QR code et dont tous les QR codes ont expiré."""
        last_expiry = (
            select(QRCode.session_id, func.max(QRCode.expired_at).label("last_expiry"))
            .group_by(QRCode.session_id)
            .subquery()
        )
        with storage_errors(self.db):
            return list(
                self.db.execute(
                    select(AttendanceSession)
                    .join(last_expiry, last_expiry.c.session_id == AttendanceSession.id)
                    .where(
                        AttendanceSession.is_closed.is_(False),
                        last_expiry.c.last_expiry < now,
                    )
                ).scalars()
            )

    # ------------------------------------------------------------
    # Roster explicite
    # ------------------------------------------------------------

    def enrol_students(self, session_id: uuid.UUID, student_ids: Iterable[uuid.UUID]) -> int:
        """Inscrit des élèves à la session ; les inscriptions existantes sont ignorées."""
        self.get_session(session_id)
        already = self.enrolled_student_ids(session_id)
        added = 0
        with storage_errors(self.db):
            for student_id in set(student_ids) - already:
                self.db.add(SessionStudent(session_id=session_id, student_id=student_id))
                added += 1
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise NotFoundError("Un ou plusieurs élèves sont introuvables.")
        return added

    def enrolled_student_ids(self, session_id: uuid.UUID) -> Set[uuid.UUID]:
        with storage_errors(self.db):
            return set(
                self.db.execute(
                    select(SessionStudent.student_id).where(SessionStudent.session_id == session_id)
                ).scalars()
            )

    # ------------------------------------------------------------
    # QR codes
    # ------------------------------------------------------------

    def code_in_use(self, code: str) -> bool:
        with storage_errors(self.db):
            return self.db.execute(select(QRCode.id).where(QRCode.code == code)).first() is not None

    def create_qr_code(
        self,
        session_id: uuid.UUID,
        code: str,
        validity_window: timedelta,
        now: datetime,
    ) -> QRCode:
        """
        Crée un QR code pour la session.

        Lève NotFoundError si la session est introuvable, ConflictError si le code
        est déjà utilisé (vérification préalable puis contrainte d'unicité, qui
        couvre deux créations concurrentes) ou si la session est clôturée.
        """
        if validity_window <= timedelta(0):
            raise ValueError("La durée de validité doit être strictement positive.")

        session = self.get_session(session_id)
        if session.is_closed:
            raise ConflictError("Impossible de créer un QR code : la session est clôturée.")
        if self.code_in_use(code):
            raise ConflictError(f"Le code {code} est déjà utilisé.")

        qr_code = QRCode(
            session_id=session_id,
            code=code,
            created_at=now,
            expired_at=now + validity_window,
        )
        with storage_errors(self.db):
            self.db.add(qr_code)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise ConflictError(f"Le code {code} est déjà utilisé.")
            self.db.refresh(qr_code)
        return qr_code

    def set_qr_image(self, qr_code: QRCode, image_url: str) -> QRCode:
        qr_code.image_url = image_url
        with storage_errors(self.db):
            self.db.commit()
            self.db.refresh(qr_code)
        return qr_code

    def get_qr_code(self, qrcode_id: uuid.UUID) -> QRCode:
        with storage_errors(self.db):
            qr_code = self.db.get(QRCode, qrcode_id)
        if qr_code is None:
            raise NotFoundError("QR code introuvable.")
        return qr_code

    def get_qr_code_by_code(self, code: str) -> QRCode:
        with storage_errors(self.db):
            qr_code = self.db.execute(select(QRCode).where(QRCode.code == code)).scalar()
        if qr_code is None:
            raise NotFoundError("QR code introuvable.")
        return qr_code
