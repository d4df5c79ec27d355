"""Student-side QR scanner flow."""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Optional

from edusphere.client.context import ClientContext
from edusphere.client.geolocation import GeolocationError, Position
from edusphere.navigation import View
from edusphere.services.errors import CheckInError, ExpiredCodeError, SubmissionError
from edusphere.services.qr_service import QRService

logger = logging.getLogger(__name__)

class ScannerState(Enum):
    IDLE = 'idle'
    SCANNING = 'scanning'
    VALIDATING = 'validating'
    SUCCESS = 'success'
    ERROR = 'error'

class CodeScanner:
    
    def __init__(self, context: ClientContext, executor=None):
        context.open(View.QR_SCANNER)
        self.context = context
        self.state = ScannerState.IDLE
        self.error: Optional[CheckInError] = None
        self.error_message = ''
        self.result: Optional[dict] = None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix='geo')
        self._location_future: Optional[Future] = None
    
    def start_scan(self) -> None:
        """Activate the decoder and request location without waiting for it."""
        if self.state in (ScannerState.SCANNING, ScannerState.VALIDATING):
            return
        
        self.state = ScannerState.SCANNING
        self.error = None
        self.error_message = ''
        self.result = None
        self._location_future = self._executor.submit(self.context.geolocation.get_current_position)
    
    def stop_scan(self) -> None:
        """Abandon scanning, e.g. when the page is hidden."""
        if self.state == ScannerState.SCANNING:
            self.state = ScannerState.IDLE
    
    def on_decoded(self, qr_data: str) -> ScannerState:
        """Handle decoded text: pre-validate locally, then submit the check-in."""
        if self.state != ScannerState.SCANNING:
            return self.state
        
        self.state = ScannerState.VALIDATING
        try:
            payload = QRService.decode_payload(qr_data)
            if payload.is_expired(self.context.clock()):
                raise ExpiredCodeError()
            
            location = self.current_location()
            self.result = self.context.store.check_in(
                qr_data,
                location.as_tuple() if location else None
            )
        except CheckInError as e:
            self.error = e
            self.error_message = e.message
            self.state = ScannerState.ERROR
            logger.info("Check-in rejected: %s", e.code)
            return self.state
        except Exception:
            logger.exception("Check-in submission failed")
            self.error = SubmissionError()
            self.error_message = self.error.message
            self.state = ScannerState.ERROR
            return self.state
        
        self.state = ScannerState.SUCCESS
        return self.state
    
    def current_location(self) -> Optional[Position]:
        """The cached location if the request already finished, otherwise None."""
        future = self._location_future
        if future is None or not future.done():
            return None
        try:
            return future.result()
        except GeolocationError as e:
            logger.warning("Student location unavailable (code %s)", e.code)
            return None
    
    def reset(self) -> None:
        """Return to IDLE after a result; the last error message stays visible."""
        if self.state in (ScannerState.SUCCESS, ScannerState.ERROR):
            self.state = ScannerState.IDLE
