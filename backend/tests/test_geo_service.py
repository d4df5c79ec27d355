"""Tests for haversine distance and radius checks."""
import pytest
from edusphere.services.geo_service import GeoService, haversine_distance
from tests.conftest import ANCHOR, NEAR, FAR

POINTS = [
    (12.9716, 77.5946),
    (33.3152, 44.3661),
    (-33.8688, 151.2093),
    (51.5074, -0.1278),
    (0.0, 0.0),
]

@pytest.mark.parametrize('a', POINTS)
@pytest.mark.parametrize('b', POINTS)
def test_distance_is_symmetric(a, b):
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))

@pytest.mark.parametrize('point', POINTS)
def test_distance_to_self_is_zero(point):
    assert haversine_distance(*point, *point) == 0

def test_neighbouring_desk_is_about_eleven_meters():
    distance = haversine_distance(*ANCHOR, *NEAR)
    assert 10 < distance < 12

def test_across_town_is_about_a_kilometer():
    distance = haversine_distance(*ANCHOR, *FAR)
    assert 1050 < distance < 1150

def test_one_degree_of_latitude():
    # 2 * pi * 6371 km / 360
    assert haversine_distance(0, 0, 1, 0) == pytest.approx(111194.93, rel=1e-6)

def test_radius_boundary_is_inclusive():
    assert GeoService.is_within_radius(50.0, 50)
    assert not GeoService.is_within_radius(50.01, 50)

class _Session:
    def __init__(self, lat, lng, radius=50):
        self.teacher_lat = lat
        self.teacher_lng = lng
        self.radius_meters = radius
    
    def has_anchor(self):
        return self.teacher_lat is not None and self.teacher_lng is not None

def test_verify_location_reports_distance():
    result = GeoService.verify_location(*FAR, _Session(*ANCHOR))
    assert result['is_inside'] is False
    assert result['distance'] == pytest.approx(haversine_distance(*FAR, *ANCHOR))
    assert result['radius'] == 50

def test_verify_location_without_anchor_is_skipped():
    assert GeoService.verify_location(*NEAR, _Session(None, None)) is None
