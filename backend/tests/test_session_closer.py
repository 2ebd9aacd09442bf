"""
Tests du balayage de clôture de session.
Couverture : absences manquantes, idempotence, roster explicite,
échecs individuels, échec du marquage final.
"""

import uuid
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.exc import InterfaceError

from qrattend.exceptions import ConflictError, NotFoundError, StorageUnavailableError
from qrattend.models.attendance import AttendanceRecord, AttendanceStatus
from qrattend.repositories.attendance_ledger import AttendanceLedger
from qrattend.repositories.roster import RosterProvider
from qrattend.repositories.session_store import SessionStore
from qrattend.schemas.attendance import CloseOutcome
from qrattend.services.session_closer import SessionCloser


@pytest.fixture
def store(db):
    return SessionStore(db)


@pytest.fixture
def ledger(db):
    return AttendanceLedger(db)


@pytest.fixture
def closer(db, store, ledger, clock):
    return SessionCloser(store, ledger, RosterProvider(db, store), clock)


@pytest.fixture
def session(store, clock):
    return store.create_session("Géographie", uuid.uuid4(), clock.now())


def test_dix_eleves_dont_trois_enregistres_cree_sept_absences(closer, ledger, session, make_students, clock):
    student_ids = make_students(10)
    ledger.create(session.id, student_ids[0], AttendanceStatus.PRESENT, clock.now())
    ledger.create(session.id, student_ids[1], AttendanceStatus.PRESENT, clock.now())
    ledger.create(session.id, student_ids[2], AttendanceStatus.LATE, clock.now())

    report = closer.close_session(session.id)

    assert report.outcome == CloseOutcome.CLOSED
    assert report.absent_created == 7
    assert report.failed_student_ids == []
    assert report.already_closed is False
    statuses = {r.student_id: r.status for r in ledger.list_by_session(session.id)}
    assert len(statuses) == 10
    assert [statuses[s] for s in student_ids[3:]] == [AttendanceStatus.ABSENT] * 7
    assert statuses[student_ids[2]] == AttendanceStatus.LATE


def test_seconde_cloture_idempotente(closer, store, session, make_students):
    make_students(4)

    first = closer.close_session(session.id)
    second = closer.close_session(session.id)

    assert first.absent_created == 4
    assert second.absent_created == 0
    assert second.already_closed is True
    assert store.get_session(session.id).is_closed is True


def test_seconde_cloture_ignore_les_nouveaux_eleves(closer, ledger, session, make_students):
    make_students(2)
    closer.close_session(session.id)

    make_students(1)
    second = closer.close_session(session.id)

    assert second.already_closed is True
    assert second.absent_created == 0
    assert second.already_recorded == 0
    assert len(ledger.list_by_session(session.id)) == 2


def test_session_introuvable_leve_not_found(closer):
    with pytest.raises(NotFoundError):
        closer.close_session(uuid.uuid4())


def test_roster_explicite_limite_le_balayage(closer, store, ledger, session, make_students):
    student_ids = make_students(6)
    store.enrol_students(session.id, student_ids[:2])

    report = closer.close_session(session.id)

    assert report.absent_created == 2
    assert {r.student_id for r in ledger.list_by_session(session.id)} == set(student_ids[:2])


def test_cloture_horodatee_par_l_horloge(closer, store, session, clock):
    clock.advance(timedelta(hours=2))

    closer.close_session(session.id)

    closed_at = store.get_session(session.id).closed_at
    assert closed_at.replace(tzinfo=None) == clock.now().replace(tzinfo=None)


class TestEchecsPartiels:
    def make_closer(self, store, roster_ids, create_side_effect, clock):
        ledger = MagicMock(spec=AttendanceLedger)
        ledger.list_by_session.return_value = []
        ledger.create.side_effect = create_side_effect
        roster = MagicMock(spec=RosterProvider)
        roster.student_ids.return_value = set(roster_ids)
        return SessionCloser(store, ledger, roster, clock), ledger

    def test_un_echec_n_interrompt_pas_les_autres(self, store, session, clock):
        failing = uuid.uuid4()
        ok = {uuid.uuid4(), uuid.uuid4()}

        def create(session_id, student_id, status, now):
            if student_id == failing:
                raise StorageUnavailableError("connexion perdue")

        closer, ledger = self.make_closer(store, ok | {failing}, create, clock)
        report = closer.close_session(session.id)

        assert report.absent_created == 2
        assert report.failed_student_ids == [failing]
        assert ledger.create.call_count == 3
        assert store.get_session(session.id).is_closed is True

    def test_conflit_compte_comme_deja_enregistre(self, store, session, clock):
        raced = uuid.uuid4()

        def create(session_id, student_id, status, now):
            if student_id == raced:
                raise ConflictError("déjà enregistré")

        closer, _ = self.make_closer(store, {raced, uuid.uuid4()}, create, clock)
        report = closer.close_session(session.id)

        assert report.absent_created == 1
        assert report.already_recorded == 1
        assert report.failed_student_ids == []


def test_echec_du_marquage_final_laisse_la_session_ouverte(db, ledger, session, make_students, clock):
    make_students(2)
    store = SessionStore(db)
    store.close_session = MagicMock(side_effect=StorageUnavailableError("indisponible"))
    closer = SessionCloser(store, ledger, RosterProvider(db, store), clock)

    with pytest.raises(StorageUnavailableError):
        closer.close_session(session.id)

    assert SessionStore(db).get_session(session.id).is_closed is False


def test_connexion_perdue_pour_un_eleve_n_interrompt_pas_le_balayage(
    closer, store, ledger, session, make_students
):
    student_ids = make_students(4)
    failing = student_ids[1]

    def connexion_fermee(mapper, connection, target):
        if target.student_id == failing:
            raise InterfaceError("INSERT", {}, Exception("connection already closed"))

    event.listen(AttendanceRecord, "before_insert", connexion_fermee)
    try:
        report = closer.close_session(session.id)
    finally:
        event.remove(AttendanceRecord, "before_insert", connexion_fermee)

    assert report.absent_created == 3
    assert report.failed_student_ids == [failing]
    assert store.get_session(session.id).is_closed is True
    assert {r.student_id for r in ledger.list_by_session(session.id)} == set(student_ids) - {failing}
