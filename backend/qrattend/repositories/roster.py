"""
Calcul du roster d'une session : élèves attendus lors du balayage de clôture.

Si la session possède des inscriptions explicites (session_students), seuls ces
élèves sont attendus. Sinon, tous les élèves connus du système le sont.
"""

import uuid
from typing import Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from qrattend.models.person import Student
from qrattend.repositories import storage_errors
from qrattend.repositories.session_store import SessionStore


class RosterProvider:
    def __init__(self, db: Session, store: SessionStore):
        self.db = db
        self.store = store

    def student_ids(self, session_id: uuid.UUID) -> Set[uuid.UUID]:
        enrolled = self.store.enrolled_student_ids(session_id)
        if enrolled:
            return enrolled
        with storage_errors(self.db):
            return set(self.db.execute(select(Student.id)).scalars())
