"""Device geolocation collaborator."""
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class Position:
    latitude: float
    longitude: float
    
    def as_tuple(self):
        return (self.latitude, self.longitude)

class GeolocationError(Exception):
    """Position lookup failed; ``code`` follows the standard geolocation codes."""
    
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3
    
    MESSAGES = {
        PERMISSION_DENIED: 'Location permission denied. Please enable location access.',
        POSITION_UNAVAILABLE: 'Location information unavailable.',
        TIMEOUT: 'Location request timed out.',
    }
    
    def __init__(self, code: int, message: str = None):
        self.code = code
        self.message = message or self.MESSAGES.get(code, 'An unknown error occurred.')
        super().__init__(self.message)

class GeolocationProvider:
    """Single "get current position" capability."""
    
    def get_current_position(self) -> Position:
        raise NotImplementedError

class StaticGeolocation(GeolocationProvider):
    """Returns a fixed position, or raises a fixed error."""
    
    def __init__(self, position: Optional[Position] = None, error_code: Optional[int] = None):
        if position is None and error_code is None:
            error_code = GeolocationError.POSITION_UNAVAILABLE
        self.position = position
        self.error_code = error_code
    
    @classmethod
    def at(cls, latitude: float, longitude: float) -> 'StaticGeolocation':
        return cls(position=Position(latitude, longitude))
    
    def get_current_position(self) -> Position:
        if self.error_code is not None:
            raise GeolocationError(self.error_code)
        return self.position
