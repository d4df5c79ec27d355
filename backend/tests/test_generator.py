"""Tests for the teacher-side code generator."""
import threading
import time
from datetime import timedelta

import pytest

from edusphere.client import ClientContext, ClientSettings, CodeGenerator, GeneratorState, StaticGeolocation
from edusphere.client.executors import InlineExecutor
from edusphere.client.generator import GeneratorStateError
from edusphere.client.geolocation import GeolocationError
from edusphere.models.user import UserRole
from edusphere.navigation import NavigationError
from edusphere.services.qr_service import QRService
from tests.conftest import ANCHOR, FakeClock
from tests.fakes import FakeStore

@pytest.fixture
def store():
    return FakeStore()

@pytest.fixture
def clock():
    return FakeClock()

def _context(store, clock, geolocation=None, role=UserRole.FACULTY, **settings):
    return ClientContext(
        user_id=1,
        role=role,
        store=store,
        geolocation=geolocation or StaticGeolocation.at(*ANCHOR),
        settings=ClientSettings(**settings),
        clock=clock
    )

@pytest.fixture
def generator(store, clock):
    return CodeGenerator(_context(store, clock), classroom_id=7, lecture_id='slot-1',
                         writer=InlineExecutor())

@pytest.fixture
def active(generator):
    generator.request_location()
    generator.start(count_as_lecture=True)
    return generator

def test_students_cannot_open_generator(store, clock):
    with pytest.raises(NavigationError):
        CodeGenerator(_context(store, clock, role=UserRole.STUDENT), classroom_id=7)

def test_location_fix_moves_to_confirm(generator):
    assert generator.state == GeneratorState.REQUESTING_LOCATION
    assert generator.request_location() is True
    assert generator.state == GeneratorState.CONFIRM
    assert generator.location.as_tuple() == ANCHOR

@pytest.mark.parametrize('code,message', [
    (GeolocationError.PERMISSION_DENIED, 'Location permission denied. Please enable location access.'),
    (GeolocationError.POSITION_UNAVAILABLE, 'Location information unavailable.'),
    (GeolocationError.TIMEOUT, 'Location request timed out.'),
])
def test_location_failure_blocks_start(store, clock, code, message):
    generator = CodeGenerator(
        _context(store, clock, geolocation=StaticGeolocation(error_code=code)), classroom_id=7,
        writer=InlineExecutor()
    )
    
    assert generator.request_location() is False
    assert generator.state == GeneratorState.REQUESTING_LOCATION
    assert generator.location_error == message
    with pytest.raises(GeneratorStateError):
        generator.start()
    assert store.writes == []

def test_retry_after_location_failure(store, clock):
    geolocation = StaticGeolocation(error_code=GeolocationError.TIMEOUT)
    generator = CodeGenerator(_context(store, clock, geolocation=geolocation), classroom_id=7,
                              writer=InlineExecutor())
    generator.request_location()
    
    geolocation.error_code = None
    geolocation.position = StaticGeolocation.at(*ANCHOR).position
    
    assert generator.request_location() is True
    assert generator.location_error is None

def test_start_renders_and_persists(active, store, clock):
    payload = QRService.decode_payload(active.display_payload)
    
    assert active.state == GeneratorState.ACTIVE
    assert active.countdown == 15
    assert payload.sid == active.session_id
    assert payload.nonce == active.display_nonce
    assert payload.expires_at == clock() + timedelta(seconds=15)
    
    saved = store.sessions[active.session_id]
    assert saved['anchor'] == ANCHOR
    assert saved['lecture_id'] == 'slot-1'
    assert saved['count_as_lecture'] is True
    assert active.durable_nonce == active.display_nonce
    assert active.reconcile() is True

def test_count_as_lecture_flag_is_carried(generator, store):
    generator.request_location()
    generator.start(count_as_lecture=False)
    assert store.sessions[generator.session_id]['count_as_lecture'] is False

def test_countdown_and_rotation(active, store, clock):
    first_nonce = active.display_nonce
    
    for _ in range(14):
        clock.advance(1)
        active.tick()
    assert active.countdown == 1
    assert store.sessions[active.session_id]['nonce'] == first_nonce
    
    clock.advance(1)
    active.tick()
    
    assert active.countdown == 15
    assert active.display_nonce != first_nonce
    assert store.sessions[active.session_id]['nonce'] == active.display_nonce
    assert store.sessions[active.session_id]['expires_at'] == clock() + timedelta(seconds=15)

def test_failed_write_does_not_block_display(active, store, clock, caplog):
    store.fail_writes = True
    before = active.display_payload
    
    active.rotate()
    
    assert active.display_payload != before
    assert active.last_write_error == 'rotate refused'
    assert active.durable_nonce != active.display_nonce
    assert active.reconcile() is False
    assert 'rotate write failed' in caplog.text
    
    # The next successful write catches the store up
    store.fail_writes = False
    active.rotate()
    assert active.reconcile() is True
    assert active.last_write_error is None

def test_failed_create_still_shows_code(generator, store):
    store.fail_writes = True
    generator.request_location()
    payload = generator.start()
    
    assert generator.state == GeneratorState.ACTIVE
    assert payload is not None
    assert generator.durable_nonce is None

def test_poll_updates_count(active, store):
    store.present = 4
    assert active.poll() == 4
    assert active.present_count == 4

def test_tick_and_poll_ignored_when_not_active(generator, store):
    generator.tick()
    assert generator.poll() == 0
    assert store.count_calls == 0

def test_stop_reports_final_count_and_deactivates(active, store):
    store.present = 3
    
    assert active.stop() == 3
    assert active.state == GeneratorState.STOPPED
    assert store.sessions[active.session_id]['active'] is False
    
    # Further ticks are no-ops
    nonce = active.display_nonce
    active.tick()
    assert active.display_nonce == nonce
    with pytest.raises(GeneratorStateError):
        active.rotate()

def test_stop_twice_is_harmless(active, store):
    active.stop()
    active.stop()
    assert [action for action, _ in store.writes].count('stop') == 1

def test_qr_image(active):
    assert active.qr_image.startswith('data:image/png;base64,')

def test_run_requires_active_session(generator):
    with pytest.raises(GeneratorStateError):
        generator.run()

def test_timers_drive_rotation_and_polling(store):
    generator = CodeGenerator(
        _context(store, FakeClock(), tick_seconds=0.01, poll_seconds=0.02, rotation_seconds=2),
        classroom_id=7,
        writer=InlineExecutor()
    )
    generator.request_location()
    generator.start()
    first_nonce = generator.display_nonce
    
    generator.run()
    assert generator.timers_running
    
    deadline = time.monotonic() + 2
    while (generator.display_nonce == first_nonce or store.count_calls == 0) \
            and time.monotonic() < deadline:
        time.sleep(0.01)
    
    generator.stop()
    
    assert generator.display_nonce != first_nonce
    assert store.count_calls > 0
    assert not generator.timers_running
    assert store.sessions[generator.session_id]['active'] is False
    
    # No timer keeps firing after stop
    calls = store.count_calls
    nonce = generator.display_nonce
    time.sleep(0.05)
    assert store.count_calls == calls
    assert generator.display_nonce == nonce

class BlockingStore(FakeStore):
    """Holds session creation until released."""
    
    def __init__(self):
        super().__init__()
        self.release = threading.Event()
    
    def create_session(self, *args, **kwargs):
        self.release.wait(5)
        super().create_session(*args, **kwargs)

class SlowCountStore(FakeStore):
    """The first attendee count takes a while to come back."""
    
    def __init__(self):
        super().__init__()
        self.poll_started = threading.Event()
        self.poll_finished = threading.Event()
    
    def count_attendees(self, session_id):
        if not self.poll_started.is_set():
            self.poll_started.set()
            time.sleep(0.2)
            self.poll_finished.set()
        return super().count_attendees(session_id)

def test_store_receives_the_displayed_nonce(active, store):
    first_nonce = active.display_nonce
    active.rotate()
    
    assert store.writes == [
        ('create', {'session_id': active.session_id, 'nonce': first_nonce}),
        ('rotate', {'session_id': active.session_id, 'nonce': active.display_nonce}),
    ]
    assert active.durable_nonce == active.display_nonce

def test_start_does_not_wait_for_the_store(clock):
    store = BlockingStore()
    generator = CodeGenerator(_context(store, clock), classroom_id=7)
    generator.request_location()
    
    payload = generator.start()
    
    assert payload == generator.display_payload
    assert generator.state == GeneratorState.ACTIVE
    assert store.writes == []
    assert generator.durable_nonce is None
    
    store.release.set()
    generator.stop()
    assert generator.durable_nonce == generator.display_nonce
    assert store.sessions[generator.session_id]['active'] is False

def test_stop_waits_for_in_flight_poll():
    store = SlowCountStore()
    generator = CodeGenerator(
        _context(store, FakeClock(), tick_seconds=10, poll_seconds=0.01),
        classroom_id=7,
        writer=InlineExecutor()
    )
    generator.request_location()
    generator.start()
    generator.run()
    
    assert store.poll_started.wait(2)
    generator.stop()
    
    assert store.poll_finished.is_set()
    assert not generator.timers_running
