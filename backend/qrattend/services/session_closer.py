"""
Clôture de session : balayage qui marque ABSENT chaque élève du roster
sans enregistrement de présence, puis marque la session clôturée.

Chaque écriture est indépendante : l'échec d'un élève n'interrompt pas
le balayage, il est consigné dans le rapport.
"""

import logging
import uuid

from qrattend.clock import Clock
from qrattend.exceptions import ConflictError
from qrattend.models.attendance import AttendanceStatus
from qrattend.repositories.attendance_ledger import AttendanceLedger
from qrattend.repositories.roster import RosterProvider
from qrattend.repositories.session_store import SessionStore
from qrattend.schemas.attendance import ClosureReport

logger = logging.getLogger(__name__)


class SessionCloser:
    def __init__(
        self,
        store: SessionStore,
        ledger: AttendanceLedger,
        roster: RosterProvider,
        clock: Clock,
    ):
        self.store = store
        self.ledger = ledger
        self.roster = roster
        self.clock = clock

    def close_session(self, session_id: uuid.UUID) -> ClosureReport:
        """
        Clôture la session et crée les absences manquantes.

        Lève NotFoundError si la session est introuvable. Idempotent : une
        session déjà clôturée n'est pas balayée à nouveau, le rapport est vide.
        Si le marquage final échoue, l'erreur est propagée et la session reste ouverte.
        """
        session = self.store.get_session(session_id)
        if session.is_closed:
            logger.info("Session %s déjà clôturée : aucun balayage", session_id)
            return ClosureReport(
                session_id=session_id,
                absent_created=0,
                already_recorded=0,
                failed_student_ids=[],
                already_closed=True,
            )

        now = self.clock.now()

        recorded = {record.student_id for record in self.ledger.list_by_session(session_id)}
        missing = self.roster.student_ids(session_id) - recorded

        created = 0
        already_recorded = 0
        failed = []

        for student_id in sorted(missing, key=str):
            try:
                self.ledger.create(session_id, student_id, AttendanceStatus.ABSENT, now)
                created += 1
            except ConflictError:
                # L'élève a scanné entre la lecture du registre et l'écriture
                already_recorded += 1
            except Exception as exc:
                failed.append(student_id)
                logger.warning(
                    "Absence non enregistrée pour l'élève %s (session %s) : %s",
                    student_id, session_id, exc,
                )

        self.store.close_session(session_id, now)

        logger.info(
            "Session %s clôturée : %d absences créées, %d déjà enregistrés, %d échecs",
            session_id, created, already_recorded, len(failed),
        )

        return ClosureReport(
            session_id=session_id,
            absent_created=created,
            already_recorded=already_recorded,
            failed_student_ids=failed,
            already_closed=False,
        )
