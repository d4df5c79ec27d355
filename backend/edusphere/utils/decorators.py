"""Custom decorators for authorization."""
from functools import wraps
from flask import g
from flask_jwt_extended import get_jwt_identity
from edusphere.navigation import View, can_access
from edusphere.services.auth_service import AuthService
from edusphere.utils.helpers import error_response

def view_required(view: View):
    """Require the current user's role to have a route to ``view``.
    
    The loaded user is stored on ``g.current_user``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = AuthService.get_user_by_id(get_jwt_identity())
            
            if not user or not user.is_active:
                return error_response("User not found", 404)
            
            if not can_access(user.role, view):
                return error_response("You do not have access to this feature", 403)
            
            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator
