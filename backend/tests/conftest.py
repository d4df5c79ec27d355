"""Shared fixtures for the EduSphere test suite."""
from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from edusphere import create_app, db
from edusphere.models import User, UserRole, Course, Enrollment

ANCHOR = (12.9716, 77.5946)
NEAR = (12.9716, 77.5947)   # ~11 m from ANCHOR
FAR = (12.9800, 77.6000)    # ~1.1 km from ANCHOR

class FakeClock:
    """Callable clock that only moves when told to."""
    
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 10, 18, 9, 0, 0)
    
    def __call__(self) -> datetime:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

@pytest.fixture
def app():
    """Create test app."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

def _make_user(email, name, role):
    user = User(email=email, name=name, role=role)
    user.set_password('password123')
    user.save()
    return user.id

@pytest.fixture
def faculty_id(app):
    return _make_user('faculty@example.com', 'Faculty Member', UserRole.FACULTY)

@pytest.fixture
def other_faculty_id(app):
    return _make_user('other.faculty@example.com', 'Other Faculty', UserRole.FACULTY)

@pytest.fixture
def student_id(app):
    return _make_user('student@example.com', 'First Student', UserRole.STUDENT)

@pytest.fixture
def second_student_id(app):
    return _make_user('student2@example.com', 'Second Student', UserRole.STUDENT)

@pytest.fixture
def course_id(app, faculty_id, student_id, second_student_id):
    course = Course(code='CS101', name='Introduction to Programming', faculty_id=faculty_id)
    course.save()
    db.session.add(Enrollment(student_id=student_id, course_id=course.id))
    db.session.add(Enrollment(student_id=second_student_id, course_id=course.id))
    db.session.commit()
    return course.id

@pytest.fixture
def auth_headers(app):
    """Build bearer headers for a user id."""
    def make(user_id):
        token = create_access_token(identity=str(user_id))
        return {'Authorization': f'Bearer {token}'}
    return make

@pytest.fixture
def clock():
    return FakeClock()
