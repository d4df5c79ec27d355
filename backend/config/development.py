"""Development configuration."""
import os
from .base import Config

class DevelopmentConfig(Config):
    """Development configuration class."""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_DATABASE_URI = os.getenv('DEV_DATABASE_URL') or \
        'sqlite:///edusphere_dev.db'
    SQLALCHEMY_ECHO = True
    
    # Redis (optional in dev)
    REDIS_URL = os.getenv('REDIS_URL') or None
    
    LOG_LEVEL = 'DEBUG'
