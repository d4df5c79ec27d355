"""Database seeding service for test data."""
from edusphere import db
from edusphere.models.user import User, UserRole
from edusphere.models.course import Course, Enrollment

class SeedService:
    """Service to seed database with test data."""
    
    @staticmethod
    def seed_all():
        """Seed all test data."""
        faculty = SeedService.seed_faculty()
        courses = SeedService.seed_courses(faculty)
        SeedService.seed_students(courses)
    
    @staticmethod
    def _get_or_create_user(email: str, name: str, role: UserRole, password: str) -> User:
        user = User.query.filter_by(email=email).first()
        if not user:
            user = User(email=email, name=name, role=role)
            user.set_password(password)
            db.session.add(user)
            db.session.flush()
        return user
    
    @staticmethod
    def seed_faculty() -> User:
        faculty = SeedService._get_or_create_user(
            'faculty@edusphere.edu', 'Dr. Meera Rao', UserRole.FACULTY, 'faculty123'
        )
        db.session.commit()
        print(f"✅ Faculty ready: {faculty.email}")
        return faculty
    
    @staticmethod
    def seed_courses(faculty: User) -> list:
        courses = []
        for code, name in [('CS101', 'Introduction to Programming'), ('CS201', 'Data Structures')]:
            course = Course.query.filter_by(code=code).first()
            if not course:
                course = Course(code=code, name=name, faculty_id=faculty.id)
                db.session.add(course)
            courses.append(course)
        db.session.commit()
        print(f"✅ Created {Course.query.count()} courses")
        return courses
    
    @staticmethod
    def seed_students(courses: list) -> None:
        for index in range(1, 6):
            student = SeedService._get_or_create_user(
                f'student{index}@edusphere.edu', f'Student {index}', UserRole.STUDENT, 'student123'
            )
            for course in courses:
                exists = Enrollment.query.filter_by(student_id=student.id, course_id=course.id).first()
                if not exists:
                    db.session.add(Enrollment(student_id=student.id, course_id=course.id))
        db.session.commit()
        print(f"✅ Enrolled students, {Enrollment.query.count()} enrollments total")
