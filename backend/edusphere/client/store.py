"""Session store adapters used by the generator and scanner.

``LocalAttendanceStore`` calls the services in-process. ``ApiAttendanceStore``
talks to the REST API with ``requests``. Both raise ``StoreError`` for failed
session writes and ``CheckInError`` subclasses for rejected check-ins.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple

import requests
from sqlalchemy.exc import SQLAlchemyError

from edusphere.services.errors import (
    CheckInError, ERRORS_BY_CODE, SubmissionError, TooFarError
)
from edusphere.utils.time_utils import to_iso_z

logger = logging.getLogger(__name__)

Location = Optional[Tuple[float, float]]

class StoreError(Exception):
    """A session read or write against the store failed."""

class AttendanceStore:
    """Operations the attendance components need from the data store."""
    
    def create_session(self, session_id: str, classroom_id: int, nonce: str,
                       expires_at: datetime, latitude: float, longitude: float,
                       lecture_id: str = None, count_as_lecture: bool = True,
                       radius_meters: float = 50) -> None:
        raise NotImplementedError
    
    def update_session(self, session_id: str, nonce: str, expires_at: datetime) -> None:
        raise NotImplementedError
    
    def deactivate_session(self, session_id: str) -> None:
        raise NotImplementedError
    
    def count_attendees(self, session_id: str) -> int:
        raise NotImplementedError
    
    def check_in(self, qr_data: str, location: Location = None) -> dict:
        raise NotImplementedError

class LocalAttendanceStore(AttendanceStore):
    """In-process store bound to a Flask app and the acting user."""
    
    def __init__(self, app, user_id: int):
        self.app = app
        self.user_id = user_id
    
    def create_session(self, session_id, classroom_id, nonce, expires_at, latitude, longitude,
                       lecture_id=None, count_as_lecture=True, radius_meters=50):
        from edusphere.services.session_service import SessionService
        
        with self.app.app_context():
            try:
                SessionService.create_session(
                    session_id=session_id,
                    classroom_id=classroom_id,
                    teacher_id=self.user_id,
                    nonce=nonce,
                    expires_at=expires_at,
                    latitude=latitude,
                    longitude=longitude,
                    lecture_id=lecture_id,
                    count_as_lecture=count_as_lecture,
                    radius_meters=radius_meters
                )
            except SQLAlchemyError as e:
                self._rollback()
                raise StoreError(f"Error saving session: {e}") from e
    
    def update_session(self, session_id, nonce, expires_at):
        from edusphere.services.session_service import SessionService
        
        with self.app.app_context():
            try:
                session = SessionService.rotate(session_id, nonce=nonce, expires_at=expires_at)
            except SQLAlchemyError as e:
                self._rollback()
                raise StoreError(f"Error rotating session: {e}") from e
        if session is None:
            raise StoreError(f"Session {session_id} not found")
    
    def deactivate_session(self, session_id):
        from edusphere.services.session_service import SessionService
        
        with self.app.app_context():
            try:
                SessionService.stop(session_id)
            except SQLAlchemyError as e:
                self._rollback()
                raise StoreError(f"Error stopping session: {e}") from e
    
    def count_attendees(self, session_id):
        from edusphere.services.session_service import SessionService
        
        with self.app.app_context():
            try:
                return SessionService.count_attendees(session_id)
            except SQLAlchemyError as e:
                raise StoreError(f"Error counting attendees: {e}") from e
    
    def check_in(self, qr_data, location=None):
        from edusphere.services.checkin_service import CheckInService
        
        with self.app.app_context():
            try:
                record = CheckInService.check_in(
                    student_id=self.user_id,
                    qr_data=qr_data,
                    location=location
                )
            except SQLAlchemyError as e:
                self._rollback()
                logger.error("Check-in lookup failed: %s", e)
                raise SubmissionError() from e
            return {
                'attendance_id': record.id,
                'session_id': record.session_id,
                'course_id': record.course_id,
                'status': record.status.value
            }
    
    def _rollback(self):
        from edusphere import db
        db.session.rollback()

class ApiAttendanceStore(AttendanceStore):
    """Store backed by the EduSphere REST API."""
    
    def __init__(self, base_url: str, access_token: str, timeout: float = 10,
                 http: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.http = http or requests.Session()
        self.http.headers.update({'Authorization': f'Bearer {access_token}'})
    
    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        return self.http.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
    
    def _session_call(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._request(method, path, **kwargs)
        except requests.RequestException as e:
            raise StoreError(f"{method} {path} failed: {e}") from e
        
        if response.status_code >= 400:
            raise StoreError(f"{method} {path} returned {response.status_code}: "
                             f"{self._message(response)}")
        return response.json().get('data') or {}
    
    @staticmethod
    def _message(response: requests.Response) -> str:
        try:
            return response.json().get('message', response.text)
        except ValueError:
            return response.text
    
    def create_session(self, session_id, classroom_id, nonce, expires_at, latitude, longitude,
                       lecture_id=None, count_as_lecture=True, radius_meters=50):
        self._session_call('POST', '/api/sessions', json={
            'id': session_id,
            'classroom_id': classroom_id,
            'lecture_id': lecture_id,
            'nonce': nonce,
            'expires_at': to_iso_z(expires_at),
            'latitude': latitude,
            'longitude': longitude,
            'count_as_lecture': count_as_lecture,
            'radius_meters': radius_meters
        })
    
    def update_session(self, session_id, nonce, expires_at):
        self._session_call('PUT', f'/api/sessions/{session_id}/rotate', json={
            'nonce': nonce,
            'expires_at': to_iso_z(expires_at)
        })
    
    def deactivate_session(self, session_id):
        self._session_call('POST', f'/api/sessions/{session_id}/stop')
    
    def count_attendees(self, session_id):
        data = self._session_call('GET', f'/api/sessions/{session_id}/count')
        return int(data.get('present', 0))
    
    def check_in(self, qr_data, location=None):
        body = {'qr_data': qr_data}
        if location is not None:
            body['latitude'], body['longitude'] = location
        
        try:
            response = self._request('POST', '/api/attendance/checkin', json=body)
        except requests.RequestException as e:
            logger.error("Check-in request failed: %s", e)
            raise SubmissionError() from e
        
        if response.status_code < 400:
            try:
                return response.json().get('data') or {}
            except ValueError as e:
                logger.error("Check-in response was not JSON: %s", response.text[:200])
                raise SubmissionError() from e
        
        raise self._check_in_error(response)
    
    def _check_in_error(self, response: requests.Response) -> CheckInError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        
        code = body.get('code')
        details = body.get('details') or {}
        
        if code == TooFarError.code:
            return TooFarError(details.get('distance', 0), details.get('radius', 0))
        
        error_class = ERRORS_BY_CODE.get(code)
        if error_class is None:
            logger.error("Unexpected check-in response %s: %s", response.status_code, body)
            return SubmissionError(body.get('message') or None)
        return error_class(body.get('message'))
