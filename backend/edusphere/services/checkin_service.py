"""Server-side QR check-in validation.

Steps run in a fixed order and the first failure wins:
decode, expiry, session lookup, nonce pinning (optional), geofence,
duplicate check, insert.
"""
import logging
from datetime import datetime
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from edusphere import db
from edusphere.models.attendance import AttendanceRecord, AttendanceStatus
from edusphere.services.errors import (
    ExpiredCodeError, SessionNotFoundError, NonceMismatchError,
    TooFarError, LocationRequiredError, AlreadyMarkedError, SubmissionError
)
from edusphere.services.geo_service import GeoService
from edusphere.services.qr_service import QRService
from edusphere.services.session_service import SessionService
from edusphere.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

Location = Tuple[float, float]

class CheckInService:
    """Validate a scanned code and record attendance."""
    
    @staticmethod
    def check_in(
        student_id: int,
        qr_data: str,
        location: Optional[Location] = None,
        now: datetime = None,
        allow_without_location: bool = None,
        enforce_nonce: bool = None
    ) -> AttendanceRecord:
        now = now or utcnow()
        if allow_without_location is None:
            allow_without_location = current_app.config.get('ALLOW_CHECKIN_WITHOUT_LOCATION', True)
        if enforce_nonce is None:
            enforce_nonce = current_app.config.get('ATTENDANCE_ENFORCE_NONCE', False)
        
        payload = QRService.decode_payload(qr_data)
        
        if payload.is_expired(now):
            raise ExpiredCodeError()
        
        session = SessionService.get_active_session(payload.sid)
        if not session:
            raise SessionNotFoundError()
        
        if enforce_nonce and session.nonce != payload.nonce:
            raise NonceMismatchError()
        
        if location is not None:
            result = GeoService.verify_location(location[0], location[1], session)
            if result is not None and not result['is_inside']:
                raise TooFarError(result['distance'], result['radius'])
        elif not allow_without_location and session.has_anchor():
            raise LocationRequiredError()
        
        existing = AttendanceRecord.query.filter_by(
            session_id=session.id,
            student_id=student_id
        ).first()
        if existing:
            raise AlreadyMarkedError()
        
        record = AttendanceRecord(
            session_id=session.id,
            student_id=student_id,
            course_id=session.classroom_id,
            date=now.date(),
            status=AttendanceStatus.PRESENT,
            check_in_time=now,
            student_lat=location[0] if location else None,
            student_lng=location[1] if location else None,
            marked_via='qr'
        )
        
        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError:
            # Concurrent scan by the same student won the unique constraint
            db.session.rollback()
            raise AlreadyMarkedError()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("Attendance insert failed for session %s: %s", session.id, e)
            raise SubmissionError()
        
        logger.info("Student %s checked in to session %s", student_id, session.id)
        return record
