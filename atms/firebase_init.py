import os
import logging

import firebase_admin
from firebase_admin import credentials, firestore, auth

logger = logging.getLogger(__name__)

_app = None
_db = None


def _setting(app_config, key, default=''):
    value = app_config.get(key) if app_config else None
    return value or os.environ.get(key, default)


def init_firebase(app_config=None):
    """Initialise the default Firebase app and Firestore client once."""
    global _app, _db

    if _app is not None:
        return

    cred_path = _setting(app_config, 'GOOGLE_APPLICATION_CREDENTIALS', './firebase-service-account.json')
    if os.path.exists(cred_path):
        cred = credentials.Certificate(cred_path)
    else:
        logger.info('No service account at %s, using application default credentials', cred_path)
        cred = credentials.ApplicationDefault()

    project_id = _setting(app_config, 'FIREBASE_PROJECT_ID')
    options = {'projectId': project_id} if project_id else None

    _app = firebase_admin.initialize_app(cred, options=options)
    _db = firestore.client()
    logger.info('Firebase initialised (project=%s)', project_id or 'default')


def get_db():
    if _db is None:
        init_firebase()
    return _db


def get_auth():
    return auth
