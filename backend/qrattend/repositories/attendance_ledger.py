"""
Registre des présences : un enregistrement au plus par couple (session, élève).

create() est l'unique chemin d'écriture d'un nouvel enregistrement. Il s'appuie
sur la contrainte d'unicité uq_attendance_session_student : l'INSERT est
atomique côté BDD, jamais une lecture suivie d'une écriture applicative.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from qrattend.exceptions import ConflictError, NotFoundError
from qrattend.models.attendance import AttendanceRecord, AttendanceStatus
from qrattend.repositories import storage_errors

logger = logging.getLogger(__name__)


class AttendanceLedger:
    def __init__(self, db: Session):
        self.db = db

    def find(self, session_id: uuid.UUID, student_id: uuid.UUID) -> Optional[AttendanceRecord]:
        with storage_errors(self.db):
            return self.db.execute(
                select(AttendanceRecord).where(
                    AttendanceRecord.session_id == session_id,
                    AttendanceRecord.student_id == student_id,
                )
            ).scalar()

    def create(
        self,
        session_id: uuid.UUID,
        student_id: uuid.UUID,
        status: AttendanceStatus,
        now: datetime,
    ) -> AttendanceRecord:
        """
        Insère l'enregistrement dans sa propre transaction.

        Lève ConflictError si un enregistrement existe déjà pour ce couple :
        c'est le signal d'idempotence, l'appelant le traduit en "déjà enregistré".
        Lève NotFoundError si la session ou l'élève n'existe pas (clé étrangère).
        """
        record = AttendanceRecord(
            session_id=session_id,
            student_id=student_id,
            status=status,
            created_at=now,
        )
        with storage_errors(self.db):
            self.db.add(record)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                # Deux causes possibles : doublon (session, élève) ou clé étrangère invalide
                if self.find(session_id, student_id) is not None:
                    raise ConflictError(
                        f"Présence déjà enregistrée pour l'élève {student_id} (session {session_id})."
                    )
                raise NotFoundError(f"Élève {student_id} ou session {session_id} introuvable.")
            self.db.refresh(record)

        logger.debug("Présence %s créée : élève %s, session %s", status.value, student_id, session_id)
        return record

    def list_by_session(self, session_id: uuid.UUID) -> List[AttendanceRecord]:
        with storage_errors(self.db):
            return list(
                self.db.execute(
                    select(AttendanceRecord)
                    .where(AttendanceRecord.session_id == session_id)
                    .order_by(AttendanceRecord.created_at)
                ).scalars()
            )

    def update_status(
        self,
        session_id: uuid.UUID,
        student_id: uuid.UUID,
        status: AttendanceStatus,
        now: datetime,
    ) -> AttendanceRecord:
        """
        Correction explicite par l'enseignant : seul moyen de modifier un statut existant.
        Lève NotFoundError si aucun enregistrement n'existe pour ce couple.
        """
        record = self.find(session_id, student_id)
        if record is None:
            raise NotFoundError("Enregistrement de présence introuvable.")

        record.status = status
        record.updated_at = now
        with storage_errors(self.db):
            self.db.commit()
            self.db.refresh(record)

        logger.info(
            "Présence corrigée : élève %s, session %s → %s",
            student_id, session_id, status.value,
        )
        return record
