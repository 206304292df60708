import logging
from datetime import timedelta

import requests as http_requests
from firebase_admin import exceptions as firebase_exceptions
from flask import Blueprint, current_app, jsonify, session
from flask_wtf.csrf import generate_csrf

from atms import firestore_dao as dao
from atms.decorators import auth_required, get_current_user
from atms.errors import ATMSError, NotAuthenticatedError, form_error
from atms.firebase_init import get_auth
from atms.forms import LoginForm, RegistrationForm
from atms.services import dashboard, users
from atms.services.activity import log_activity
from atms.utils import utcnow

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/auth')

FIREBASE_SIGN_IN_URL = (
    'https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword'
)


def _firebase_sign_in(email, password):
    """Verify email/password via Firebase Auth REST API.

    Returns the ID token on success, or None on failure.
    """
    api_key = current_app.config.get('FIREBASE_WEB_API_KEY')
    if not api_key:
        logger.error('FIREBASE_WEB_API_KEY is not configured')
        return None

    try:
        resp = http_requests.post(
            f'{FIREBASE_SIGN_IN_URL}?key={api_key}',
            json={
                'email': email,
                'password': password,
                'returnSecureToken': True,
            },
            timeout=10,
        )
    except http_requests.RequestException as e:
        logger.error('Firebase sign-in request failed: %s', e)
        raise ATMSError('The authentication service is unavailable.', 502)
    if resp.status_code == 200:
        return resp.json().get('idToken')
    return None


@bp.route('/csrf-token')
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})


@bp.route('/register', methods=['POST'])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        raise form_error(form)
    uid = users.register(form.display_name.data, form.email.data,
                         form.password.data, form.requested_role.data)
    return jsonify({
        'uid': uid,
        'message': 'Registration successful. An administrator will review your request.',
    }), 201


@bp.route('/login', methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        raise form_error(form)

    id_token = _firebase_sign_in(form.email.data, form.password.data)
    if not id_token:
        raise NotAuthenticatedError('Invalid email or password.')

    auth = get_auth()
    try:
        expires_in = timedelta(days=current_app.config['SESSION_COOKIE_DAYS'])
        session_cookie = auth.create_session_cookie(id_token, expires_in=expires_in)
        uid = auth.verify_session_cookie(session_cookie)['uid']
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.warning('Could not create a session for %s: %s', form.email.data, e)
        raise NotAuthenticatedError('Login failed. Please try again.')

    user = dao.get_user(uid)
    if not user:
        raise NotAuthenticatedError('No profile exists for this account.')

    session['firebase_session'] = session_cookie
    dao.update_user(uid, {'last_login': utcnow()})
    log_activity(user, 'logged in', f'user: {user.get("email")}')
    return jsonify({
        'uid': uid,
        'role': user.get('role', 'pending'),
        'display_name': user.get('display_name', ''),
        'menu': dashboard.menu(user.get('role', 'pending')),
    })


@bp.route('/logout', methods=['POST'])
@auth_required
def logout():
    session.pop('firebase_session', None)
    return jsonify({'message': 'Logged out.'})


@bp.route('/me')
@auth_required
def me():
    user = get_current_user()
    data = user.to_dict()
    data['menu'] = dashboard.menu(user.role)
    return jsonify(data)
