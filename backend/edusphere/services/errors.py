"""Check-in error taxonomy.

Every rejection carries a stable ``code`` for API clients, a human-readable
``message`` for the student, and the HTTP ``status_code`` it maps to.
"""

class ErrorCategory:
    FORMAT = 'format'
    TEMPORAL = 'temporal'
    LOCATION = 'location'
    STATE = 'state'
    PERSISTENCE = 'persistence'

class CheckInError(Exception):
    """Base class for rejected check-ins."""
    
    code = 'check_in_failed'
    category = ErrorCategory.STATE
    status_code = 400
    default_message = 'Failed to mark attendance'
    
    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)
    
    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'category': self.category,
            'message': self.message
        }

class InvalidPayloadError(CheckInError):
    code = 'invalid_format'
    category = ErrorCategory.FORMAT
    default_message = 'Invalid QR code format'

class ExpiredCodeError(CheckInError):
    code = 'expired'
    category = ErrorCategory.TEMPORAL
    default_message = 'QR code has expired. Please scan the new code.'

class NonceMismatchError(CheckInError):
    code = 'nonce_mismatch'
    category = ErrorCategory.TEMPORAL
    status_code = 409
    default_message = 'QR code has been replaced. Please scan the new code.'

class SessionNotFoundError(CheckInError):
    code = 'session_not_found'
    status_code = 404
    default_message = 'Session not found. The QR code may have expired.'

class TooFarError(CheckInError):
    code = 'too_far'
    category = ErrorCategory.LOCATION
    status_code = 403
    
    def __init__(self, distance: float, radius: float):
        self.distance = distance
        self.radius = radius
        super().__init__(
            f'You are too far from the classroom ({round(distance)}m away). '
            'Please move closer.'
        )
    
    def to_dict(self) -> dict:
        data = super().to_dict()
        data['distance'] = round(self.distance)
        data['radius'] = self.radius
        return data

class LocationRequiredError(CheckInError):
    code = 'location_required'
    category = ErrorCategory.LOCATION
    status_code = 403
    default_message = 'Location is required to mark attendance. Please enable location access.'

class AlreadyMarkedError(CheckInError):
    code = 'already_marked'
    status_code = 409
    default_message = 'You have already marked attendance for this session.'

class SubmissionError(CheckInError):
    code = 'submission_failed'
    category = ErrorCategory.PERSISTENCE
    status_code = 500
    default_message = 'Failed to mark attendance. Please try again.'

ERRORS_BY_CODE = {
    cls.code: cls for cls in (
        InvalidPayloadError, ExpiredCodeError, NonceMismatchError,
        SessionNotFoundError, LocationRequiredError,
        AlreadyMarkedError, SubmissionError
    )
}
