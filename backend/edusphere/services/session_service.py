"""Attendance session lifecycle: create, rotate, stop, count."""
import logging
from datetime import datetime
from typing import Optional

from edusphere import db
from edusphere.models.attendance import AttendanceRecord
from edusphere.models.attendance_session import AttendanceSession
from edusphere.models.course import Enrollment
from edusphere.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

class SessionService:
    """Persistence operations for attendance sessions."""
    
    @staticmethod
    def create_session(
        session_id: str,
        classroom_id: int,
        teacher_id: int,
        nonce: str,
        expires_at: datetime,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        lecture_id: Optional[str] = None,
        count_as_lecture: bool = True,
        radius_meters: float = 50
    ) -> AttendanceSession:
        """Create a session and deactivate any other active one for the classroom."""
        previous = AttendanceSession.query.filter_by(
            classroom_id=classroom_id,
            active=True
        ).update({'active': False}, synchronize_session=False)
        
        if previous:
            logger.info("Deactivated %d previous session(s) for classroom %s", previous, classroom_id)
        
        session = AttendanceSession(
            id=session_id,
            classroom_id=classroom_id,
            lecture_id=lecture_id,
            teacher_id=teacher_id,
            nonce=nonce,
            teacher_lat=latitude,
            teacher_lng=longitude,
            radius_meters=radius_meters,
            issued_at=utcnow(),
            expires_at=expires_at,
            active=True,
            count_as_lecture=count_as_lecture
        )
        db.session.add(session)
        db.session.commit()
        
        logger.info("Session %s started for classroom %s", session_id, classroom_id)
        return session
    
    @staticmethod
    def get_session(session_id: str) -> Optional[AttendanceSession]:
        return db.session.get(AttendanceSession, session_id)
    
    @staticmethod
    def get_active_session(session_id: str) -> Optional[AttendanceSession]:
        """Read a session by id filtered on active=true."""
        return AttendanceSession.query.filter_by(id=session_id, active=True).first()
    
    @staticmethod
    def rotate(session_id: str, nonce: str, expires_at: datetime) -> Optional[AttendanceSession]:
        """Replace the nonce and expiry. Returns None if the session is unknown."""
        session = SessionService.get_session(session_id)
        if not session:
            return None
        
        session.update(nonce=nonce, expires_at=expires_at, issued_at=utcnow())
        logger.debug("Session %s rotated, expires %s", session_id, expires_at)
        return session
    
    @staticmethod
    def stop(session_id: str, now: datetime = None) -> Optional[AttendanceSession]:
        """Deactivate a session and expire its current code."""
        session = SessionService.get_session(session_id)
        if not session:
            return None
        
        session.update(active=False, expires_at=now or utcnow())
        logger.info("Session %s stopped", session_id)
        return session
    
    @staticmethod
    def count_attendees(session_id: str) -> int:
        return AttendanceRecord.query.filter_by(session_id=session_id).count()
    
    @staticmethod
    def enrolled_count(classroom_id: int) -> int:
        return Enrollment.query.filter_by(course_id=classroom_id, status='active').count()
