"""
Machine à états de la présence : transforme un scan (QR code, élève, instant)
en au plus un enregistrement dans le registre.

États par couple (session, élève) : NON SCANNÉ (aucune ligne), PRESENT, LATE, ABSENT.
  NON SCANNÉ → PRESENT : scan avant created_at + période de grâce
  NON SCANNÉ → LATE    : scan après la période de grâce, avant expired_at
  NON SCANNÉ → ABSENT  : uniquement via la clôture de session
PRESENT, LATE et ABSENT sont terminaux pour les scans.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from qrattend.clock import Clock, as_utc
from qrattend.exceptions import ConflictError
from qrattend.models.attendance import AttendanceStatus
from qrattend.models.session import QRCode
from qrattend.repositories.attendance_ledger import AttendanceLedger
from qrattend.repositories.session_store import SessionStore
from qrattend.schemas.scan import SCAN_MESSAGES, ScanOutcome, ScanResult

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = timedelta(minutes=15)


class AttendanceEvaluator:
    def __init__(
        self,
        store: SessionStore,
        ledger: AttendanceLedger,
        clock: Clock,
        grace_period: timedelta = DEFAULT_GRACE_PERIOD,
    ):
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.grace_period = grace_period

    def scan(self, qrcode_id: uuid.UUID, student_id: uuid.UUID, now: Optional[datetime] = None) -> ScanResult:
        """Scan du QR code par son identifiant. Lève NotFoundError si le QR code est inconnu."""
        qr_code = self.store.get_qr_code(qrcode_id)
        return self._evaluate(qr_code, student_id, now)

    def scan_code(self, code: str, student_id: uuid.UUID, now: Optional[datetime] = None) -> ScanResult:
        """Scan par saisie du code à 6 chiffres. Lève NotFoundError si le code est inconnu."""
        qr_code = self.store.get_qr_code_by_code(code)
        return self._evaluate(qr_code, student_id, now)

    def classify(self, qr_code: QRCode, now: datetime) -> ScanOutcome:
        """Classe un instant par rapport aux fenêtres du QR code (bornes incluses)."""
        now = as_utc(now)
        created_at = as_utc(qr_code.created_at)
        on_time_deadline = created_at + self.grace_period
        if now <= on_time_deadline:
            return ScanOutcome.PRESENT
        if now <= as_utc(qr_code.expired_at):
            return ScanOutcome.LATE
        return ScanOutcome.EXPIRED

    def _evaluate(self, qr_code: QRCode, student_id: uuid.UUID, now: Optional[datetime]) -> ScanResult:
        now = as_utc(now or self.clock.now())
        session_id = qr_code.session_id

        # Vérifié avant l'expiration : un élève déjà enregistré n'est jamais "expiré"
        existing = self.ledger.find(session_id, student_id)
        if existing is not None:
            logger.debug("Scan en double : élève %s, session %s", student_id, session_id)
            return self._result(ScanOutcome.ALREADY_RECORDED, qr_code, student_id, existing.status, now)

        session = self.store.get_session(session_id)
        if session.is_closed:
            logger.info("Scan refusé, session %s clôturée (élève %s)", session_id, student_id)
            return self._result(ScanOutcome.EXPIRED, qr_code, student_id, None, now)

        outcome = self.classify(qr_code, now)
        if outcome is ScanOutcome.EXPIRED:
            logger.info("QR code %s expiré (élève %s)", qr_code.id, student_id)
            return self._result(outcome, qr_code, student_id, None, now)

        status = AttendanceStatus.PRESENT if outcome is ScanOutcome.PRESENT else AttendanceStatus.LATE
        try:
            self.ledger.create(session_id, student_id, status, now)
        except ConflictError:
            # Course perdue contre un scan concurrent du même élève
            existing = self.ledger.find(session_id, student_id)
            logger.debug("Insertion concurrente perdue : élève %s, session %s", student_id, session_id)
            return self._result(
                ScanOutcome.ALREADY_RECORDED,
                qr_code,
                student_id,
                existing.status if existing is not None else None,
                now,
            )

        logger.info("Élève %s enregistré %s (session %s)", student_id, status.value, session_id)
        return self._result(outcome, qr_code, student_id, status, now)

    @staticmethod
    def _result(
        outcome: ScanOutcome,
        qr_code: QRCode,
        student_id: uuid.UUID,
        status: Optional[AttendanceStatus],
        now: datetime,
    ) -> ScanResult:
        return ScanResult(
            outcome=outcome,
            message=SCAN_MESSAGES[outcome],
            session_id=qr_code.session_id,
            qrcode_id=qr_code.id,
            student_id=student_id,
            status=status,
            scanned_at=now,
        )
