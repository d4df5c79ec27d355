"""QR attendance session API endpoints (faculty side)."""
import logging
from flask import Blueprint, request, current_app, g
from flask_jwt_extended import jwt_required
from edusphere import db, limiter
from edusphere.models.course import Course
from edusphere.models.user import UserRole
from edusphere.navigation import View
from edusphere.services.qr_service import QRService
from edusphere.services.session_service import SessionService
from edusphere.utils.decorators import view_required
from edusphere.utils.helpers import success_response, error_response
from edusphere.utils.time_utils import utcnow, expiry_from, parse_iso
from edusphere.utils.validators import Validator

logger = logging.getLogger(__name__)

sessions_bp = Blueprint('sessions', __name__)

def _can_manage(user, session) -> bool:
    return user.role == UserRole.ADMIN or session.teacher_id == user.id

def _code_data(session):
    payload = QRService.build_payload(session.id, session.nonce, session.expires_at)
    qr_data = QRService.encode_payload(payload)
    return {
        'session': session.to_dict(),
        'qr_data': qr_data,
        'qr_image': QRService.render_qr_image(qr_data),
        'expires_in': current_app.config['QR_ROTATION_SECONDS']
    }

def _read_expiry(data):
    """Client-supplied expiry, or now + rotation window."""
    if data.get('expires_at'):
        return parse_iso(data['expires_at'])
    return expiry_from(utcnow(), current_app.config['QR_ROTATION_SECONDS'])

@sessions_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Session service is running')

@sessions_bp.route('', methods=['POST'])
@jwt_required()
@view_required(View.QR_GENERATOR)
@limiter.limit("30 per hour")
def create_session():
    """Start a QR attendance session anchored at the teacher's location."""
    data = request.get_json(silent=True) or {}
    user = g.current_user
    
    validation = Validator.validate_required_fields(data, ['classroom_id', 'latitude', 'longitude'])
    if not validation['is_valid']:
        return error_response(validation['errors'][0], 400)
    
    location, location_error = Validator.parse_location(data)
    if location_error:
        return error_response(location_error, 400)
    
    course = db.session.get(Course, data['classroom_id'])
    if not course:
        return error_response("Classroom not found", 404)
    
    if user.role != UserRole.ADMIN and course.faculty_id not in (None, user.id):
        return error_response("You can only start sessions for your own classrooms", 403)
    
    radius = data.get('radius_meters', current_app.config['ATTENDANCE_RADIUS_METERS'])
    if not Validator.validate_radius(radius):
        return error_response("radius_meters must be between 0 and 5000", 400)
    
    session_id = data.get('id') or QRService.new_session_id()
    if SessionService.get_session(session_id):
        return error_response("Session id already exists", 409)
    
    try:
        expires_at = _read_expiry(data)
    except ValueError:
        return error_response("Invalid expires_at timestamp", 400)
    
    try:
        session = SessionService.create_session(
            session_id=session_id,
            classroom_id=course.id,
            teacher_id=user.id,
            nonce=data.get('nonce') or QRService.new_nonce(),
            expires_at=expires_at,
            latitude=location[0],
            longitude=location[1],
            lecture_id=data.get('lecture_id'),
            count_as_lecture=bool(data.get('count_as_lecture', True)),
            radius_meters=radius
        )
    except Exception as e:
        db.session.rollback()
        logger.exception("Failed to create session")
        return error_response(f"Error creating session: {str(e)}", 500)
    
    return success_response(
        data=_code_data(session),
        message="Attendance session started",
        status_code=201
    )

@sessions_bp.route('/<session_id>', methods=['GET'])
@limiter.exempt
@jwt_required()
@view_required(View.SESSION_MONITOR)
def get_session(session_id):
    """Get session details."""
    session = SessionService.get_session(session_id)
    if not session:
        return error_response("Session not found", 404)
    if not _can_manage(g.current_user, session):
        return error_response("Access denied", 403)
    
    return success_response(data=session.to_dict())

@sessions_bp.route('/<session_id>/rotate', methods=['PUT'])
@limiter.exempt
@jwt_required()
@view_required(View.QR_GENERATOR)
def rotate_session(session_id):
    """Replace the session nonce and expiry."""
    data = request.get_json(silent=True) or {}
    
    session = SessionService.get_session(session_id)
    if not session:
        return error_response("Session not found", 404)
    if not _can_manage(g.current_user, session):
        return error_response("Access denied", 403)
    if not session.active:
        return error_response("Session is not active", 409)
    
    try:
        expires_at = _read_expiry(data)
    except ValueError:
        return error_response("Invalid expires_at timestamp", 400)
    
    try:
        session = SessionService.rotate(
            session_id,
            nonce=data.get('nonce') or QRService.new_nonce(),
            expires_at=expires_at
        )
    except Exception as e:
        db.session.rollback()
        logger.exception("Failed to rotate session %s", session_id)
        return error_response(f"Error rotating session: {str(e)}", 500)
    
    return success_response(data=_code_data(session), message="QR code rotated")

@sessions_bp.route('/<session_id>/stop', methods=['POST'])
@limiter.exempt
@jwt_required()
@view_required(View.QR_GENERATOR)
def stop_session(session_id):
    """Deactivate a session and report the final count."""
    session = SessionService.get_session(session_id)
    if not session:
        return error_response("Session not found", 404)
    if not _can_manage(g.current_user, session):
        return error_response("Access denied", 403)
    
    try:
        session = SessionService.stop(session_id)
    except Exception as e:
        db.session.rollback()
        logger.exception("Failed to stop session %s", session_id)
        return error_response(f"Error stopping session: {str(e)}", 500)
    
    return success_response(
        data={
            'session': session.to_dict(),
            'present': SessionService.count_attendees(session_id)
        },
        message="Attendance session stopped"
    )

@sessions_bp.route('/<session_id>/count', methods=['GET'])
@limiter.exempt
@jwt_required()
@view_required(View.SESSION_MONITOR)
def session_count(session_id):
    """Live attendee count for polling."""
    session = SessionService.get_session(session_id)
    if not session:
        return error_response("Session not found", 404)
    if not _can_manage(g.current_user, session):
        return error_response("Access denied", 403)
    
    return success_response(data={
        'session_id': session_id,
        'present': SessionService.count_attendees(session_id),
        'enrolled': SessionService.enrolled_count(session.classroom_id),
        'active': session.active
    })
