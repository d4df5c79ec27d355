"""Attendance record model."""
from enum import Enum
from edusphere import db
from edusphere.models.base import BaseModel
from edusphere.utils.time_utils import utcnow

class AttendanceStatus(Enum):
    """Attendance status enumeration."""
    PRESENT = 'Present'
    ABSENT = 'Absent'
    LATE = 'Late'

class AttendanceRecord(BaseModel):
    """One student's attendance for one session. Never mutated after insert."""
    
    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('session_id', 'student_id', name='uq_attendance_session_student'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(36), db.ForeignKey('attendance_sessions.id'), nullable=True, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.Enum(AttendanceStatus), default=AttendanceStatus.PRESENT, nullable=False)
    check_in_time = db.Column(db.DateTime, default=utcnow, nullable=False)
    
    # Location where check-in happened
    student_lat = db.Column(db.Float, nullable=True)
    student_lng = db.Column(db.Float, nullable=True)
    
    marked_via = db.Column(db.String(20), default='qr', nullable=False)  # qr, manual
    
    def __repr__(self):
        return f'<AttendanceRecord {self.session_id}-{self.student_id}>'
