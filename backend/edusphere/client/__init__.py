"""Teacher and student client components for QR attendance."""
from .context import ClientContext, ClientSettings
from .generator import CodeGenerator, GeneratorState
from .geolocation import GeolocationError, Position, StaticGeolocation
from .scanner import CodeScanner, ScannerState
from .store import ApiAttendanceStore, AttendanceStore, LocalAttendanceStore, StoreError

__all__ = [
    'ClientContext', 'ClientSettings',
    'CodeGenerator', 'GeneratorState',
    'CodeScanner', 'ScannerState',
    'GeolocationError', 'Position', 'StaticGeolocation',
    'AttendanceStore', 'LocalAttendanceStore', 'ApiAttendanceStore', 'StoreError'
]
