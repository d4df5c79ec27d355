"""Course (classroom) and enrollment models."""
from edusphere import db
from edusphere.models.base import BaseModel

class Course(BaseModel):
    """A classroom that attendance sessions are opened for."""
    
    __tablename__ = 'courses'
    
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    faculty_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    
    enrollments = db.relationship('Enrollment', backref='course', lazy='dynamic')
    
    def __repr__(self) -> str:
        return f'<Course {self.code}>'

class Enrollment(BaseModel):
    """Student membership in a course."""
    
    __tablename__ = 'enrollments'
    __table_args__ = (
        db.UniqueConstraint('student_id', 'course_id', name='uq_enrollment_student_course'),
    )
    
    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    status = db.Column(db.String(20), default='active', nullable=False)
