"""
Planificateur APScheduler pour la clôture automatique des sessions.

Le job clôture les sessions ouvertes dont tous les QR codes ont expiré,
avec le même balayage d'absences qu'une clôture manuelle.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from qrattend.clock import Clock
from qrattend.config import settings
from qrattend.database import SessionLocal
from qrattend.dependencies import build_closer
from qrattend.repositories.session_store import SessionStore

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def close_expired_sessions(db, clock: Clock) -> int:
    """
    Clôture les sessions ouvertes dont le dernier QR code a expiré.
    Retourne le nombre de sessions clôturées. Une session en échec n'empêche
    pas la clôture des suivantes.
    """
    closer = build_closer(db, clock)
    closed = 0
    for session in SessionStore(db).list_expired_open_sessions(clock.now()):
        session_id = session.id
        try:
            report = closer.close_session(session_id)
        except Exception as exc:
            logger.error("Clôture automatique de la session %s impossible : %s", session_id, exc)
            continue
        closed += 1
        logger.info(
            "Session %s clôturée automatiquement : %d absences, %d échecs",
            session_id, report.absent_created, len(report.failed_student_ids),
        )
    return closed


def _close_expired_sessions_scheduled() -> None:
    """Tâche planifiée : ouvre une session BDD dédiée et lance le balayage."""
    db = SessionLocal()
    try:
        close_expired_sessions(db, Clock())
    except Exception as exc:
        logger.error("Erreur lors de la clôture automatique des sessions : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.AUTO_CLOSE_ENABLED:
        logger.info("Clôture automatique désactivée.")
        return
    scheduler.add_job(
        _close_expired_sessions_scheduled,
        trigger="interval",
        minutes=settings.AUTO_CLOSE_INTERVAL_MINUTES,
        id="close_expired_sessions",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré — clôture des sessions expirées toutes les %d minutes.",
        settings.AUTO_CLOSE_INTERVAL_MINUTES,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
