"""Models package with all models."""
from .base import BaseModel
from .user import User, UserRole
from .course import Course, Enrollment
from .attendance_session import AttendanceSession
from .attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    'BaseModel', 'User', 'UserRole',
    'Course', 'Enrollment',
    'AttendanceSession', 'AttendanceRecord', 'AttendanceStatus'
]
