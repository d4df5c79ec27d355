"""Geofence distance helpers."""
import math
from typing import Dict, Optional

EARTH_RADIUS_METERS = 6371000

class GeoService:
    """Service for location verification against a session anchor."""
    
    @staticmethod
    def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle distance between two points in meters (haversine)."""
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)
        
        a = (math.sin(delta_lat / 2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
        
        return EARTH_RADIUS_METERS * c
    
    @staticmethod
    def is_within_radius(distance: float, radius_meters: float) -> bool:
        """Inclusive: a point exactly on the boundary is inside."""
        return distance <= radius_meters
    
    @staticmethod
    def verify_location(latitude: float, longitude: float, session) -> Optional[Dict]:
        """Check a student position against the session anchor.
        
        Returns None when the session has no anchor to compare against.
        """
        if not session.has_anchor():
            return None
        
        distance = GeoService.calculate_distance(
            latitude, longitude,
            session.teacher_lat, session.teacher_lng
        )
        
        return {
            'is_inside': GeoService.is_within_radius(distance, session.radius_meters),
            'distance': distance,
            'radius': session.radius_meters,
            'anchor': {
                'latitude': session.teacher_lat,
                'longitude': session.teacher_lng
            }
        }

haversine_distance = GeoService.calculate_distance
