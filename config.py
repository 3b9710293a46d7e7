import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv(BASE_DIR / '.env')


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Template definitions and entity directory
    DOCUMENTS_DIR = os.getenv('DOCUMENTS_DIR', str(BASE_DIR / 'documents'))
    ENTITIES_FILE = os.getenv('ENTITIES_FILE', str(BASE_DIR / 'documents' / 'entities.yml'))

    # Persisted per-entity, per-year resolution counters
    RESOLUTION_REGISTER_PATH = os.getenv(
        'RESOLUTION_REGISTER_PATH', str(BASE_DIR / 'instance' / 'resolution_register.json')
    )


class TestingConfig(Config):
    TESTING = True
    LOG_LEVEL = 'DEBUG'
