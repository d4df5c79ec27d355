"""Generator and scanner running against the in-process store."""
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from edusphere import db
from edusphere.client import (
    ClientContext, CodeGenerator, CodeScanner, GeneratorState, LocalAttendanceStore,
    ScannerState, StaticGeolocation
)
from edusphere.client.executors import InlineExecutor
from edusphere.models import AttendanceRecord, AttendanceSession, UserRole
from edusphere.services.checkin_service import CheckInService
from edusphere.services.errors import AlreadyMarkedError, ExpiredCodeError, SubmissionError, TooFarError
from edusphere.services.session_service import SessionService
from edusphere.utils.time_utils import utcnow
from tests.conftest import ANCHOR, NEAR, FAR, FakeClock

@pytest.fixture
def clock():
    return FakeClock(utcnow())

@pytest.fixture
def generator(app, faculty_id, course_id, clock):
    context = ClientContext(
        user_id=faculty_id,
        role=UserRole.FACULTY,
        store=LocalAttendanceStore(app, faculty_id),
        geolocation=StaticGeolocation.at(*ANCHOR),
        clock=clock
    )
    generator = CodeGenerator(context, classroom_id=course_id, writer=InlineExecutor())
    generator.request_location()
    generator.start(count_as_lecture=True)
    return generator

def _scanner(app, user_id, position, clock):
    context = ClientContext(
        user_id=user_id,
        role=UserRole.STUDENT,
        store=LocalAttendanceStore(app, user_id),
        geolocation=StaticGeolocation.at(*position),
        clock=clock
    )
    return CodeScanner(context, executor=InlineExecutor())

def _fresh_session(session_id):
    db.session.expire_all()
    return db.session.get(AttendanceSession, session_id)

def test_generator_persists_session(generator, faculty_id, course_id):
    session = _fresh_session(generator.session_id)
    
    assert session.active is True
    assert session.nonce == generator.display_nonce
    assert (session.teacher_lat, session.teacher_lng) == ANCHOR
    assert session.teacher_id == faculty_id
    assert session.classroom_id == course_id

def test_fifteen_ticks_rotate_the_stored_nonce(generator, clock):
    nonce_at_start = _fresh_session(generator.session_id).nonce
    
    for _ in range(15):
        clock.advance(1)
        generator.tick()
    
    assert _fresh_session(generator.session_id).nonce != nonce_at_start
    assert generator.reconcile() is True

def test_classroom_check_in_scenario(app, generator, student_id, second_student_id, clock):
    first = _scanner(app, student_id, NEAR, clock)
    first.start_scan()
    assert first.on_decoded(generator.display_payload) == ScannerState.SUCCESS
    
    record = AttendanceRecord.query.filter_by(session_id=generator.session_id, student_id=student_id).one()
    assert record.status.value == 'Present'
    
    first.reset()
    first.start_scan()
    assert first.on_decoded(generator.display_payload) == ScannerState.ERROR
    assert isinstance(first.error, AlreadyMarkedError)
    
    second = _scanner(app, second_student_id, FAR, clock)
    second.start_scan()
    assert second.on_decoded(generator.display_payload) == ScannerState.ERROR
    assert isinstance(second.error, TooFarError)
    assert 1050 < second.error.distance < 1150
    
    assert generator.poll() == 1
    assert generator.stop() == 1
    assert generator.state == GeneratorState.STOPPED
    assert _fresh_session(generator.session_id).active is False

def test_code_from_session_start_expires(app, generator, student_id, clock):
    start_code = generator.display_payload
    clock.advance(16)
    
    scanner = _scanner(app, student_id, NEAR, clock)
    scanner.start_scan()
    assert scanner.on_decoded(start_code) == ScannerState.ERROR
    assert isinstance(scanner.error, ExpiredCodeError)
    
    # The server reaches the same verdict
    with pytest.raises(ExpiredCodeError):
        CheckInService.check_in(student_id, start_code, location=NEAR, now=clock())

def test_stopped_generator_leaves_session_inactive(generator):
    generator.stop()
    assert SessionService.get_active_session(generator.session_id) is None

def test_local_store_lookup_failure_is_submission_error(app, student_id):
    store = LocalAttendanceStore(app, student_id)
    failure = OperationalError('SELECT 1', {}, Exception('database is locked'))
    
    with mock.patch.object(CheckInService, 'check_in', side_effect=failure):
        with pytest.raises(SubmissionError):
            store.check_in('code', NEAR)
