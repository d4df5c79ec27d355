"""Tests for the Role x View dispatch table."""
import pytest
from edusphere.models.user import UserRole
from edusphere.navigation import (
    ROUTES, View, NavigateTo, NavigationError, allowed_views, can_access, navigate, resolve
)

ALL_PAIRS = [(role, view) for role in UserRole for view in View]

@pytest.mark.parametrize('role,view', ALL_PAIRS)
def test_every_pair_either_resolves_or_raises(role, view):
    if (role, view) in ROUTES:
        assert resolve(role, view) == ROUTES[(role, view)]
    else:
        with pytest.raises(NavigationError):
            resolve(role, view)

def test_every_role_has_a_dashboard():
    for role in UserRole:
        assert can_access(role, View.DASHBOARD)

def test_attendance_views_are_split_by_role():
    assert allowed_views(UserRole.STUDENT) == [View.DASHBOARD, View.QR_SCANNER, View.ATTENDANCE_SUMMARY]
    assert View.QR_SCANNER not in allowed_views(UserRole.FACULTY)
    assert View.QR_GENERATOR in allowed_views(UserRole.ADMIN)

def test_navigate_to_allowed_view():
    assert navigate(UserRole.FACULTY, View.DASHBOARD, NavigateTo(View.QR_GENERATOR)) == View.QR_GENERATOR

def test_navigate_to_forbidden_view_stays_put():
    assert navigate(UserRole.STUDENT, View.QR_SCANNER, NavigateTo(View.QR_GENERATOR)) == View.QR_SCANNER
