import logging
from functools import wraps

from firebase_admin import exceptions as firebase_exceptions
from flask import g, session

from atms.errors import NotAuthenticatedError, PermissionDeniedError
from atms.firebase_init import get_auth, get_db

logger = logging.getLogger(__name__)


def _verify_session():
    """Verify Firebase session cookie and return the user document."""
    session_cookie = session.get('firebase_session')
    if not session_cookie:
        return None

    auth = get_auth()
    try:
        decoded = auth.verify_session_cookie(session_cookie, check_revoked=True)
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.info('Rejected session cookie: %s', e)
        session.pop('firebase_session', None)
        return None

    uid = decoded['uid']
    user_doc = get_db().collection('users').document(uid).get()
    if not user_doc.exists:
        return None

    user_data = user_doc.to_dict()
    user_data['uid'] = uid
    user_data['id'] = uid
    return user_data


class CurrentUser:
    """Proxy object providing attribute access to the current user dict."""

    def __init__(self, data=None):
        self._data = data or {}

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        return self._data.get(name)

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    def get(self, key, default=None):
        return self._data.get(key, default)

    def to_dict(self):
        return {k: v for k, v in self._data.items() if k != 'id'}

    @property
    def is_authenticated(self):
        return bool(self._data)

    @property
    def uid(self):
        return self._data.get('uid', '')

    @property
    def id(self):
        return self._data.get('uid', '')

    @property
    def role(self):
        return self._data.get('role', 'pending')

    @property
    def display_name(self):
        return self._data.get('display_name') or self._data.get('email', '')

    def is_admin(self):
        return self.role == 'admin'

    def is_super_admin(self):
        return self.is_admin() and self._data.get('is_super_admin') is True

    def is_trainer(self):
        return self.role == 'trainer'

    def is_trainee(self):
        return self.role == 'trainee'

    def is_pending(self):
        return self.role in ('pending', 'user')


def load_current_user():
    """Verify the session and store the current user in g."""
    g._current_user = CurrentUser(_verify_session())


def get_current_user():
    if not hasattr(g, '_current_user'):
        load_current_user()
    return g._current_user


def auth_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        user = get_current_user()
        if not user.is_authenticated:
            raise NotAuthenticatedError('Login required.')
        g.current_user = user
        return f(*args, **kwargs)
    return decorated


def role_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = get_current_user()
            if not user.is_authenticated:
                raise NotAuthenticatedError('Login required.')
            if user.role not in roles:
                raise PermissionDeniedError('You do not have access to this section.')
            g.current_user = user
            return f(*args, **kwargs)
        return decorated
    return decorator
