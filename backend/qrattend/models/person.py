"""
Modèle SQLAlchemy pour les élèves (roster global).
Aucune donnée d'authentification : l'identité est fournie par un service externe.
"""

import uuid
from sqlalchemy import Column, DateTime, String, Uuid, func

from qrattend.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
