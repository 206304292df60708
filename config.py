import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.environ.get('SESSION_SECRET') or os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = None

    FIREBASE_WEB_API_KEY = os.environ.get('FIREBASE_WEB_API_KEY', '')
    FIREBASE_PROJECT_ID = os.environ.get('FIREBASE_PROJECT_ID', '')
    GOOGLE_APPLICATION_CREDENTIALS = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS', './firebase-service-account.json')
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'eventlet')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    SESSION_COOKIE_DAYS = int(os.environ.get('SESSION_COOKIE_DAYS', 5))

    # Materials live inside the document as base64, which must stay under 1 MiB
    MAX_MATERIAL_BYTES = int(os.environ.get('MAX_MATERIAL_BYTES', 700 * 1024))
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    PROFILE_IMAGE_MAX_SIZE = 300
    PROFILE_IMAGE_MAX_CHARS = 950000


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    WTF_CSRF_ENABLED = False
    SOCKETIO_ASYNC_MODE = 'threading'
    FIREBASE_WEB_API_KEY = 'test-api-key'
    LOG_LEVEL = 'WARNING'
