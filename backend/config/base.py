"""Base configuration shared by every environment."""
import os
from datetime import timedelta

def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

class Config:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # JWT Configuration
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=7)
    JWT_ALGORITHM = 'HS256'
    
    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]
    
    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "200 per day;50 per hour"
    
    # QR attendance
    QR_ROTATION_SECONDS = 15
    QR_POLL_SECONDS = 3
    ATTENDANCE_RADIUS_METERS = 50
    ALLOW_CHECKIN_WITHOUT_LOCATION = _env_flag('ALLOW_CHECKIN_WITHOUT_LOCATION', True)
    ATTENDANCE_ENFORCE_NONCE = _env_flag('ATTENDANCE_ENFORCE_NONCE', False)
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
