"""Attendance API endpoints (student side)."""
import logging
from flask import Blueprint, request, g
from flask_jwt_extended import jwt_required
from edusphere import limiter
from edusphere.navigation import View
from edusphere.services.attendance_service import AttendanceService
from edusphere.services.checkin_service import CheckInService
from edusphere.services.errors import CheckInError
from edusphere.utils.decorators import view_required
from edusphere.utils.helpers import success_response, error_response
from edusphere.utils.validators import Validator

logger = logging.getLogger(__name__)

attendance_bp = Blueprint('attendance', __name__)

@attendance_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Attendance service is running')

@attendance_bp.route('/checkin', methods=['POST'])
@jwt_required()
@view_required(View.QR_SCANNER)
@limiter.limit("20 per minute")
def check_in():
    """Mark attendance from a scanned QR code and optional device location."""
    data = request.get_json(silent=True) or {}
    
    if 'qr_data' not in data:
        return error_response("QR data is required", 400)
    
    location, location_error = Validator.parse_location(data)
    if location_error:
        return error_response(location_error, 400)
    
    student = g.current_user
    try:
        record = CheckInService.check_in(
            student_id=student.id,
            qr_data=data['qr_data'],
            location=location
        )
    except CheckInError as e:
        logger.info("Check-in rejected for student %s: %s", student.id, e.code)
        return error_response(e.message, e.status_code, code=e.code, details=e.to_dict())
    
    return success_response(
        data={
            'attendance_id': record.id,
            'session_id': record.session_id,
            'course_id': record.course_id,
            'status': record.status.value,
            'check_in_time': record.check_in_time.isoformat()
        },
        message="Attendance marked successfully",
        status_code=201
    )

@attendance_bp.route('/summary', methods=['GET'])
@jwt_required()
@view_required(View.ATTENDANCE_SUMMARY)
def summary():
    """Attendance percentage per enrolled course."""
    return success_response(data=AttendanceService.summary_for_student(g.current_user.id))
