"""Attendance session with rotating QR nonce."""
from datetime import datetime
from edusphere import db
from edusphere.models.base import BaseModel
from edusphere.utils.time_utils import utcnow, to_iso_z

class AttendanceSession(BaseModel):
    """Time-boxed, location-anchored attendance window for one classroom meeting."""
    
    __tablename__ = 'attendance_sessions'
    
    id = db.Column(db.String(36), primary_key=True)
    classroom_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    lecture_id = db.Column(db.String(64), nullable=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    
    nonce = db.Column(db.String(64), nullable=False)
    issued_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    active = db.Column(db.Boolean, default=True, nullable=False)
    count_as_lecture = db.Column(db.Boolean, default=True, nullable=False)
    
    # Anchor location captured from the teacher's device
    teacher_lat = db.Column(db.Float, nullable=True)
    teacher_lng = db.Column(db.Float, nullable=True)
    radius_meters = db.Column(db.Float, default=50, nullable=False)
    
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')
    
    def is_expired(self, now: datetime = None) -> bool:
        """Check if the current nonce has expired."""
        return (now or utcnow()) > self.expires_at
    
    def has_anchor(self) -> bool:
        return self.teacher_lat is not None and self.teacher_lng is not None
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'classroom_id': self.classroom_id,
            'lecture_id': self.lecture_id,
            'teacher_id': self.teacher_id,
            'nonce': self.nonce,
            'issued_at': to_iso_z(self.issued_at),
            'expires_at': to_iso_z(self.expires_at),
            'active': self.active,
            'count_as_lecture': self.count_as_lecture,
            'location': {
                'latitude': self.teacher_lat,
                'longitude': self.teacher_lng
            },
            'radius_meters': self.radius_meters
        }
