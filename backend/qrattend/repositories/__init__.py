"""
Dépôts d'accès aux données : seuls points de contact avec SQLAlchemy pour
les sessions, les QR codes et le registre des présences.
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from qrattend.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


def is_transient(exc: SQLAlchemyError) -> bool:
    """Panne de connexion : l'opération complète peut être rejouée."""
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@contextmanager
def storage_errors(db: Session):
    """
    Annule la transaction en cours sur toute erreur SQLAlchemy, pour que la
    session reste utilisable par les écritures suivantes.

    Les pannes de connexion deviennent StorageUnavailableError (rejouable),
    les autres erreurs sont propagées telles quelles.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        if is_transient(exc):
            logger.warning("Stockage indisponible : %s", getattr(exc, "orig", exc))
            raise StorageUnavailableError("Le stockage est temporairement indisponible.") from exc
        raise
