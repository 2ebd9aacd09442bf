"""
Tests du registre des présences : unicité (session, élève), correction enseignant.
"""

import uuid
from datetime import timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.exc import InterfaceError

from qrattend.exceptions import ConflictError, NotFoundError, StorageUnavailableError
from qrattend.models.attendance import AttendanceRecord, AttendanceStatus
from qrattend.repositories.attendance_ledger import AttendanceLedger
from qrattend.repositories.session_store import SessionStore


@pytest.fixture
def ledger(db):
    return AttendanceLedger(db)


@pytest.fixture
def session(db, clock):
    return SessionStore(db).create_session("Physique", uuid.uuid4(), clock.now())


def test_creation_puis_lecture(ledger, session, make_students, clock):
    (student_id,) = make_students(1)

    ledger.create(session.id, student_id, AttendanceStatus.PRESENT, clock.now())

    record = ledger.find(session.id, student_id)
    assert record is not None
    assert record.status == AttendanceStatus.PRESENT
    assert record.updated_at is None


def test_find_sans_enregistrement(ledger, session):
    assert ledger.find(session.id, uuid.uuid4()) is None


def test_doublon_leve_conflict_sans_ecraser(ledger, session, make_students, clock):
    (student_id,) = make_students(1)
    ledger.create(session.id, student_id, AttendanceStatus.PRESENT, clock.now())

    with pytest.raises(ConflictError):
        ledger.create(session.id, student_id, AttendanceStatus.ABSENT, clock.now())

    assert ledger.find(session.id, student_id).status == AttendanceStatus.PRESENT
    assert len(ledger.list_by_session(session.id)) == 1


def test_meme_eleve_deux_sessions(ledger, db, session, make_students, clock):
    (student_id,) = make_students(1)
    other = SessionStore(db).create_session("Chimie", uuid.uuid4(), clock.now())

    ledger.create(session.id, student_id, AttendanceStatus.PRESENT, clock.now())
    ledger.create(other.id, student_id, AttendanceStatus.LATE, clock.now())

    assert ledger.find(other.id, student_id).status == AttendanceStatus.LATE


def test_list_by_session(ledger, session, make_students, clock):
    student_ids = make_students(3)
    for student_id in student_ids:
        ledger.create(session.id, student_id, AttendanceStatus.LATE, clock.now())

    records = ledger.list_by_session(session.id)

    assert {r.student_id for r in records} == set(student_ids)
    assert ledger.list_by_session(uuid.uuid4()) == []


def test_connexion_perdue_annule_la_transaction(ledger, session, make_students, clock):
    first, second = make_students(2)

    def connexion_fermee(mapper, connection, target):
        raise InterfaceError("INSERT", {}, Exception("connection already closed"))

    event.listen(AttendanceRecord, "before_insert", connexion_fermee)
    try:
        with pytest.raises(StorageUnavailableError):
            ledger.create(session.id, first, AttendanceStatus.PRESENT, clock.now())
    finally:
        event.remove(AttendanceRecord, "before_insert", connexion_fermee)

    record = ledger.create(session.id, second, AttendanceStatus.PRESENT, clock.now())

    assert record.student_id == second
    assert ledger.find(session.id, first) is None


class TestUpdateStatus:
    def test_correction_remplace_le_statut(self, ledger, session, make_students, clock):
        (student_id,) = make_students(1)
        ledger.create(session.id, student_id, AttendanceStatus.ABSENT, clock.now())
        clock.advance(timedelta(hours=1))

        record = ledger.update_status(session.id, student_id, AttendanceStatus.LATE, clock.now())

        assert record.status == AttendanceStatus.LATE
        assert record.updated_at is not None

    def test_correction_sans_enregistrement_leve_not_found(self, ledger, session, clock):
        with pytest.raises(NotFoundError):
            ledger.update_status(session.id, uuid.uuid4(), AttendanceStatus.PRESENT, clock.now())
