"""Role x View dispatch table.

Every screen a user can reach is one entry in ``ROUTES``. Anything not in the
table is an invalid combination, so access checks and navigation share a
single enumerable source of truth.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from edusphere.models.user import UserRole

class View(Enum):
    DASHBOARD = 'dashboard'
    QR_GENERATOR = 'qr_generator'
    SESSION_MONITOR = 'session_monitor'
    QR_SCANNER = 'qr_scanner'
    ATTENDANCE_SUMMARY = 'attendance_summary'

class NavigationError(Exception):
    """Raised for a (role, view) pair with no route."""
    
    def __init__(self, role: UserRole, view: View):
        self.role = role
        self.view = view
        super().__init__(f"{role.value} cannot open {view.value}")

@dataclass(frozen=True)
class NavigateTo:
    """Typed navigation command."""
    view: View

ROUTES: Dict[Tuple[UserRole, View], str] = {
    (UserRole.STUDENT, View.DASHBOARD): 'student.dashboard',
    (UserRole.STUDENT, View.QR_SCANNER): 'student.scan_attendance',
    (UserRole.STUDENT, View.ATTENDANCE_SUMMARY): 'student.attendance',
    (UserRole.FACULTY, View.DASHBOARD): 'faculty.dashboard',
    (UserRole.FACULTY, View.QR_GENERATOR): 'faculty.qr_attendance',
    (UserRole.FACULTY, View.SESSION_MONITOR): 'faculty.session_monitor',
    (UserRole.ADMIN, View.DASHBOARD): 'admin.dashboard',
    (UserRole.ADMIN, View.QR_GENERATOR): 'faculty.qr_attendance',
    (UserRole.ADMIN, View.SESSION_MONITOR): 'faculty.session_monitor',
}

DEFAULT_VIEW = View.DASHBOARD

def can_access(role: UserRole, view: View) -> bool:
    return (role, view) in ROUTES

def resolve(role: UserRole, view: View) -> str:
    """Return the screen for a role and view, or raise NavigationError."""
    try:
        return ROUTES[(role, view)]
    except KeyError:
        raise NavigationError(role, view)

def allowed_views(role: UserRole) -> List[View]:
    return [view for (r, view) in ROUTES if r == role]

def navigate(role: UserRole, current: View, command: NavigateTo) -> View:
    """Apply a navigation command; invalid targets leave the current view unchanged."""
    if can_access(role, command.view):
        return command.view
    return current
