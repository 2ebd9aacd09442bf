"""
Configuration de la connexion à la base de données.
PostgreSQL en production, SQLite pour les tests (les types utilisés sont portables).
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from qrattend.config import settings

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dépendance FastAPI — fournit une session BDD et la ferme après usage."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Crée les tables manquantes (développement et tests, pas de migrations)."""
    import qrattend.models  # noqa: F401 — enregistre tous les modèles dans Base.metadata

    Base.metadata.create_all(bind=bind or engine)
