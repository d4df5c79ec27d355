"""Validation utilities for request payloads."""
from typing import Dict, List, Any, Optional, Tuple

class Validator:
    """Validation helper class."""
    
    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []
        
        for field in required_fields:
            if field not in data or data[field] is None or data[field] == '':
                errors.append(f"Missing required field: {field}")
        
        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
    
    @staticmethod
    def parse_location(data: Dict) -> Tuple[Optional[Tuple[float, float]], Optional[str]]:
        """
        Read optional latitude/longitude from a request body.
        Returns (location, error); location is None when both are absent.
        """
        lat = data.get('latitude')
        lng = data.get('longitude')
        
        if lat is None and lng is None:
            return None, None
        if lat is None or lng is None:
            return None, "Both latitude and longitude are required"
        
        try:
            lat, lng = float(lat), float(lng)
        except (TypeError, ValueError):
            return None, "Latitude and longitude must be numbers"
        
        if not -90 <= lat <= 90 or not -180 <= lng <= 180:
            return None, "Coordinates out of range"
        
        return (lat, lng), None
    
    @staticmethod
    def validate_radius(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 < value <= 5000
