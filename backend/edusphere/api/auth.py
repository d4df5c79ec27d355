"""Authentication API endpoints."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt_identity, create_access_token
from edusphere import limiter
from edusphere.navigation import allowed_views
from edusphere.services.auth_service import AuthService
from edusphere.utils.helpers import success_response, error_response

auth_bp = Blueprint("auth", __name__)

@auth_bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    return success_response(message="Auth service is running")

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("5 per hour")
def register():
    """Register a student or faculty account."""
    data = request.get_json(silent=True)
    
    if not data:
        return error_response("Request body must be JSON", 400)
    
    result, error = AuthService.register(
        email=data.get("email", ""),
        password=data.get("password", ""),
        name=data.get("name", ""),
        role=data.get("role", "STUDENT")
    )
    
    if error:
        return error_response(error, 400)
    
    return success_response(data=result, message="Registration successful", status_code=201)

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    """User login."""
    data = request.get_json(silent=True)
    
    if not data:
        return error_response("Request body must be JSON", 400)
    
    email = data.get("email", "").strip()
    password = data.get("password", "")
    
    if not email or not password:
        return error_response("Email and password are required", 400)
    
    result, error = AuthService.login(email, password)
    
    if error:
        return error_response(error, 401)
    
    return success_response(data=result, message="Login successful")

@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    """Get current user profile with the views the role can open."""
    user = AuthService.get_user_by_id(get_jwt_identity())
    
    if not user:
        return error_response("User not found", 404)
    
    response_data = user.to_dict()
    response_data['views'] = [view.value for view in allowed_views(user.role)]
    
    return success_response(data=response_data)

@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh_token():
    """Refresh access token."""
    new_access_token = create_access_token(identity=get_jwt_identity())
    return success_response(data={"access_token": new_access_token})
