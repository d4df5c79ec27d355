"""Explicit application context shared by client components."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Mapping

from edusphere.client.geolocation import GeolocationProvider
from edusphere.client.store import AttendanceStore
from edusphere.models.user import UserRole
from edusphere.navigation import View, resolve
from edusphere.utils.time_utils import utcnow

@dataclass(frozen=True)
class ClientSettings:
    rotation_seconds: int = 15
    poll_seconds: float = 3
    tick_seconds: float = 1
    radius_meters: float = 50
    
    @classmethod
    def from_config(cls, config: Mapping) -> 'ClientSettings':
        return cls(
            rotation_seconds=config.get('QR_ROTATION_SECONDS', cls.rotation_seconds),
            poll_seconds=config.get('QR_POLL_SECONDS', cls.poll_seconds),
            radius_meters=config.get('ATTENDANCE_RADIUS_METERS', cls.radius_meters)
        )

@dataclass
class ClientContext:
    """Who is acting, and the collaborators they act through."""
    user_id: int
    role: UserRole
    store: AttendanceStore
    geolocation: GeolocationProvider
    settings: ClientSettings = field(default_factory=ClientSettings)
    clock: Callable[[], datetime] = utcnow
    
    def open(self, view: View) -> str:
        """Resolve the screen for ``view``; raises NavigationError if the role has none."""
        return resolve(self.role, view)
