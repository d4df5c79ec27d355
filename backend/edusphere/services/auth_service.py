"""Authentication service for user management."""
from flask_jwt_extended import create_access_token, create_refresh_token
from edusphere.models.user import User, UserRole
from edusphere.utils.time_utils import utcnow
import re

class AuthService:
    @staticmethod
    def validate_email(email: str) -> bool:
        """Validate email format."""
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return re.match(pattern, email) is not None
    
    @staticmethod
    def validate_password(password: str) -> tuple[bool, str]:
        """Validate password strength."""
        if len(password) < 6:
            return False, "Password must be at least 6 characters long"
        return True, ""
    
    @staticmethod
    def login(email: str, password: str) -> tuple[dict, str]:
        """Authenticate user and return tokens."""
        if not email or not password:
            return None, "Email and password are required"
        
        if not AuthService.validate_email(email):
            return None, "Invalid email format"
        
        user = User.query.filter_by(email=email.lower().strip()).first()
        
        if not user or not user.check_password(password):
            return None, "Invalid email or password"
        
        if not user.is_active:
            return None, "Account is deactivated"
        
        user.update(last_login=utcnow())
        
        # JWT subjects must be strings
        access_token = create_access_token(identity=str(user.id))
        refresh_token = create_refresh_token(identity=str(user.id))
        
        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "user": user.to_dict()
        }, None
    
    @staticmethod
    def register(email: str, password: str, name: str, role: str = "STUDENT") -> tuple[dict, str]:
        """Register new user."""
        if not all([email, password, name]):
            return None, "Email, password and name are required"
        
        if not AuthService.validate_email(email):
            return None, "Invalid email format"
        
        is_valid, password_error = AuthService.validate_password(password)
        if not is_valid:
            return None, password_error
        
        if len(name.strip()) < 2:
            return None, "Name must be at least 2 characters long"
        
        email = email.lower().strip()
        if User.query.filter_by(email=email).first():
            return None, "Email already exists"
        
        try:
            user_role = UserRole(role.upper())
        except ValueError:
            user_role = UserRole.STUDENT
        
        # Admin accounts are created from the CLI only
        if user_role == UserRole.ADMIN:
            user_role = UserRole.STUDENT
        
        user = User(
            email=email,
            name=name.strip(),
            role=user_role
        )
        user.set_password(password)
        user.save()
        
        return user.to_dict(), None
    
    @staticmethod
    def get_user_by_id(user_id) -> User:
        """Get user by ID (JWT identity string or int)."""
        try:
            return User.get_by_id(int(user_id))
        except (TypeError, ValueError):
            return None
