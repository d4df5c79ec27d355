"""Teacher-side rotating QR code generator.

The displayed code is updated before the store write for it is issued, so a
slow or failing store never holds back rotation. ``display_nonce`` is what
students see; ``durable_nonce`` is the last nonce the store confirmed.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Optional

from edusphere.client.context import ClientContext
from edusphere.client.executors import RepeatingTimer
from edusphere.client.geolocation import GeolocationError, Position
from edusphere.client.store import StoreError
from edusphere.navigation import View
from edusphere.services.qr_service import QRService
from edusphere.utils.time_utils import expiry_from

logger = logging.getLogger(__name__)

class GeneratorState(Enum):
    REQUESTING_LOCATION = 'requesting-location'
    CONFIRM = 'confirm'
    GENERATING = 'generating'
    ACTIVE = 'active'
    STOPPED = 'stopped'

class GeneratorStateError(RuntimeError):
    """Operation not allowed in the generator's current state."""

class CodeGenerator:
    
    TIMER_JOIN_SECONDS = 5
    
    def __init__(self, context: ClientContext, classroom_id: int, lecture_id: Optional[str] = None,
                 writer=None):
        context.open(View.QR_GENERATOR)
        self.context = context
        self.classroom_id = classroom_id
        self.lecture_id = lecture_id
        self.window = context.settings.rotation_seconds
        
        self.state = GeneratorState.REQUESTING_LOCATION
        self.location: Optional[Position] = None
        self.location_error: Optional[str] = None
        self.count_as_lecture = True
        
        self.session_id: Optional[str] = None
        self.countdown = self.window
        self.present_count = 0
        
        # Local display state
        self.display_nonce: Optional[str] = None
        self.display_expires_at = None
        self.display_payload: Optional[str] = None
        
        # Durable state
        self.durable_nonce: Optional[str] = None
        self.last_write_error: Optional[str] = None
        
        self._writer = writer or ThreadPoolExecutor(max_workers=1, thread_name_prefix='qr-writer')
        self._timers = []
        self._lock = threading.RLock()
    
    def request_location(self) -> bool:
        """Acquire the anchor location. Stays in REQUESTING_LOCATION on failure."""
        with self._lock:
            if self.state not in (GeneratorState.REQUESTING_LOCATION, GeneratorState.CONFIRM):
                raise GeneratorStateError(f"Cannot request location while {self.state.value}")
            
            self.state = GeneratorState.REQUESTING_LOCATION
            self.location_error = None
            try:
                self.location = self.context.geolocation.get_current_position()
            except GeolocationError as e:
                self.location = None
                self.location_error = e.message
                logger.warning("Teacher location unavailable (code %s)", e.code)
                return False
            
            self.state = GeneratorState.CONFIRM
            return True
    
    def start(self, count_as_lecture: bool = True) -> str:
        """Mint the session, show the first code and persist it in the background."""
        with self._lock:
            if self.state != GeneratorState.CONFIRM or self.location is None:
                raise GeneratorStateError("A location fix is required before starting")
            
            self.state = GeneratorState.GENERATING
            self.count_as_lecture = count_as_lecture
            self.session_id = QRService.new_session_id()
            nonce, expires_at = self._render_new_code()
            self.state = GeneratorState.ACTIVE
            self.countdown = self.window
            
            self._write('create', nonce, self.context.store.create_session,
                        session_id=self.session_id,
                        classroom_id=self.classroom_id,
                        nonce=nonce,
                        expires_at=expires_at,
                        latitude=self.location.latitude,
                        longitude=self.location.longitude,
                        lecture_id=self.lecture_id,
                        count_as_lecture=count_as_lecture,
                        radius_meters=self.context.settings.radius_meters)
            return self.display_payload
    
    def tick(self) -> None:
        """One second of countdown; rotates the code when it reaches zero."""
        with self._lock:
            if self.state != GeneratorState.ACTIVE:
                return
            
            self.countdown -= 1
            if self.countdown <= 0:
                self.rotate()
    
    def rotate(self) -> str:
        with self._lock:
            if self.state != GeneratorState.ACTIVE:
                raise GeneratorStateError("Only an active session can rotate")
            
            nonce, expires_at = self._render_new_code()
            self.countdown = self.window
            self._write('rotate', nonce, self.context.store.update_session,
                        self.session_id, nonce=nonce, expires_at=expires_at)
            return self.display_payload
    
    def poll(self) -> int:
        """Refresh the live attendee count for the current session."""
        with self._lock:
            if self.state != GeneratorState.ACTIVE:
                return self.present_count
            session_id = self.session_id
        
        try:
            count = self.context.store.count_attendees(session_id)
        except StoreError as e:
            logger.warning("Attendee poll failed for %s: %s", session_id, e)
            return self.present_count
        
        with self._lock:
            if self.session_id == session_id:
                self.present_count = count
        return count
    
    def run(self) -> None:
        """Drive tick and poll from two independent repeating timers."""
        with self._lock:
            if self.state != GeneratorState.ACTIVE:
                raise GeneratorStateError("Start the session before running timers")
            if self._timers:
                return
            
            settings = self.context.settings
            self._timers = [
                RepeatingTimer(settings.tick_seconds, self.tick, name='qr-rotation').start(),
                RepeatingTimer(settings.poll_seconds, self.poll, name='qr-poll').start(),
            ]
    
    def stop(self) -> int:
        """Cancel both timers, deactivate the session and return the final count."""
        with self._lock:
            timers = self._cancel_timers()
            already_stopped = self.state == GeneratorState.STOPPED
            was_active = self.state == GeneratorState.ACTIVE
            self.state = GeneratorState.STOPPED
        
        # Joined outside the lock; a running tick or poll may be waiting on it
        for timer in timers:
            timer.join(self.TIMER_JOIN_SECONDS)
        if already_stopped:
            return self.present_count
        
        # Pending rotation writes must land before the session is deactivated
        self._writer.shutdown(wait=True)
        
        if was_active and self.session_id:
            try:
                self.present_count = self.context.store.count_attendees(self.session_id)
            except StoreError as e:
                logger.warning("Final count failed for %s: %s", self.session_id, e)
            try:
                self.context.store.deactivate_session(self.session_id)
            except StoreError as e:
                self.last_write_error = str(e)
                logger.error("Failed to deactivate session %s: %s", self.session_id, e)
        
        logger.info("Session %s stopped with %d present", self.session_id, self.present_count)
        return self.present_count
    
    def reconcile(self) -> bool:
        """True when the store has caught up with the displayed code."""
        with self._lock:
            in_sync = self.display_nonce == self.durable_nonce
            if not in_sync:
                logger.warning(
                    "Session %s store is behind the displayed code (last error: %s)",
                    self.session_id, self.last_write_error
                )
            return in_sync
    
    @property
    def qr_image(self) -> Optional[str]:
        if self.display_payload is None:
            return None
        return QRService.render_qr_image(self.display_payload)
    
    @property
    def timers_running(self) -> bool:
        return any(timer.is_running for timer in self._timers)
    
    def _render_new_code(self):
        nonce = QRService.new_nonce()
        expires_at = expiry_from(self.context.clock(), self.window)
        payload = QRService.build_payload(self.session_id, nonce, expires_at)
        self.display_nonce = nonce
        self.display_expires_at = expires_at
        self.display_payload = QRService.encode_payload(payload)
        return nonce, expires_at
    
    def _write(self, action: str, written_nonce: str, fn, *args, **kwargs) -> None:
        def task():
            try:
                fn(*args, **kwargs)
            except StoreError as e:
                with self._lock:
                    self.last_write_error = str(e)
                logger.error("Session %s %s write failed: %s", self.session_id, action, e)
                return
            with self._lock:
                self.durable_nonce = written_nonce
                self.last_write_error = None
        
        future = self._writer.submit(task)
        future.add_done_callback(self._log_write_crash)
    
    def _log_write_crash(self, future) -> None:
        error = future.exception()
        if error is not None:
            with self._lock:
                self.last_write_error = str(error)
            logger.error("Session %s writer crashed", self.session_id, exc_info=error)
    
    def _cancel_timers(self) -> list:
        timers, self._timers = self._timers, []
        for timer in timers:
            timer.cancel()
        return timers
