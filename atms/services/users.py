"""
User registration, admin user management and profile updates.

Accounts live in two places: the Firebase Auth user (credentials) and
the ``users`` document (role and profile). New accounts start with role
``pending`` and a ``pending_users`` request that an admin approves.
"""

import io
import logging

from PIL import Image, UnidentifiedImageError
from flask import current_app

from atms import firestore_dao as dao
from atms.errors import BadRequestError, ConflictError, NotFoundError, PermissionDeniedError
from atms.firebase_init import get_auth
from atms.firestore_models import Material, User
from atms.services.activity import log_activity
from atms.services.course_status import reconcile_draft_courses
from atms.services.notifications import notify

logger = logging.getLogger(__name__)


def _create_account(display_name, email, password, requested_role):
    if dao.get_user_by_email(email):
        raise ConflictError('A user with this email already exists.')
    auth = get_auth()
    try:
        firebase_user = auth.create_user(email=email, password=password,
                                         display_name=display_name)
    except auth.EmailAlreadyExistsError:
        raise ConflictError('A user with this email already exists.')

    uid = firebase_user.uid
    try:
        dao.create_user(uid, User(uid=uid, email=email, display_name=display_name,
                                  role='pending').to_dict())
        dao.create_pending_user(uid, {
            'display_name': display_name,
            'email': email,
            'requested_role': requested_role,
        })
    except Exception:
        logger.error('Profile write failed for %s, removing auth account', email)
        auth.delete_user(uid)
        dao.delete_user(uid)
        raise
    logger.info('Created pending account %s (%s)', uid, requested_role)
    return uid


def register(display_name, email, password, requested_role='trainee'):
    """Self-service sign up. Only trainee and trainer roles may be requested."""
    if requested_role not in ('trainee', 'trainer'):
        raise BadRequestError('You can only request the trainee or trainer role.')
    uid = _create_account(display_name, email, password, requested_role)
    for admin in dao.get_users_by_role('admin'):
        notify(admin['id'], 'New registration',
               f'{display_name} requested the {requested_role} role.')
    return uid


def add_user(actor, display_name, email, password, role):
    if role == 'admin' and not actor.is_super_admin():
        raise PermissionDeniedError('Only a super admin can add admins.')
    uid = _create_account(display_name, email, password, role)
    log_activity(actor, f'added {display_name}', f'user: {email}', f'Requested role: {role}')
    return uid


def list_pending():
    return dao.list_pending_users()


def approve_pending(actor, uid, role=None):
    pending = dao.get_pending_user(uid)
    if not pending:
        raise NotFoundError('Pending request not found')
    role = role or pending.get('requested_role') or 'trainee'
    if role == 'admin' and not actor.is_super_admin():
        raise PermissionDeniedError('Only a super admin can grant the admin role.')

    dao.update_user(uid, {'role': role})
    dao.delete_pending_user(uid)
    notify(uid, 'Account approved', f'Your account has been approved as {role}.', type='success')
    log_activity(actor, f"approved {pending.get('display_name', uid)}", f'user: {uid}',
                 f'Role set to: {role}')
    if role == 'trainer':
        reconcile_draft_courses()
    return role


def reject_pending(actor, uid):
    pending = dao.get_pending_user(uid)
    if not pending:
        raise NotFoundError('Pending request not found')
    dao.update_user(uid, {'role': 'user'})
    dao.delete_pending_user(uid)
    notify(uid, 'Account request rejected',
           'Your role request was rejected. Contact an administrator.', type='warning')
    log_activity(actor, f"rejected {pending.get('display_name', uid)}", f'user: {uid}')


def edit_user(actor, uid, display_name, email, role):
    target = dao.get_user(uid)
    if not target:
        raise NotFoundError('User not found')
    if target.get('is_super_admin') and not actor.is_super_admin():
        raise PermissionDeniedError('Only a super admin can edit a super admin.')
    if target.get('role') == 'admin' and uid != actor.uid and not actor.is_super_admin():
        raise PermissionDeniedError("Only a super admin can edit another admin's role.")
    if role == 'admin' and target.get('role') != 'admin' and not actor.is_super_admin():
        raise PermissionDeniedError('Only a super admin can grant the admin role.')

    if email != target.get('email'):
        existing = dao.get_user_by_email(email)
        if existing and existing['id'] != uid:
            raise ConflictError('A user with this email already exists.')
        get_auth().update_user(uid, email=email)

    changes = {'display_name': display_name, 'email': email, 'role': role}
    dao.update_user(uid, changes)
    log_activity(actor, f'edited {display_name}', f'user: {email}', f'Role changed to: {role}')
    if role == 'trainer':
        reconcile_draft_courses()
    target.update(changes)
    return target


def delete_user(actor, uid):
    target = dao.get_user(uid)
    if not target:
        raise NotFoundError('User not found')
    if uid == actor.uid:
        raise PermissionDeniedError('You cannot delete your own account.')
    if target.get('is_super_admin'):
        raise PermissionDeniedError('Super admins cannot be deleted.')
    if target.get('role') == 'admin' and not actor.is_super_admin():
        raise PermissionDeniedError('Only a super admin can delete admins.')

    dao.delete_user(uid)
    if dao.get_pending_user(uid):
        dao.delete_pending_user(uid)
    auth = get_auth()
    try:
        auth.delete_user(uid)
    except auth.UserNotFoundError:
        logger.warning('Auth account for %s was already gone', uid)
    log_activity(actor, f"deleted {target.get('display_name') or target.get('email')}",
                 f'user: {target.get("email")}')


def update_profile(user, display_name, email):
    if email != user.email:
        existing = dao.get_user_by_email(email)
        if existing and existing['id'] != user.uid:
            raise ConflictError('A user with this email already exists.')
        get_auth().update_user(user.uid, email=email)
    dao.update_user(user.uid, {'display_name': display_name, 'email': email})
    if user.is_trainer():
        reconcile_draft_courses()
    return {'display_name': display_name, 'email': email}


def encode_profile_image(raw, max_size=300, max_chars=950000):
    """Scale an image down and JPEG-encode it as a data URL under max_chars."""
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError):
        raise BadRequestError('The uploaded file is not a valid image.')

    if img.mode != 'RGB':
        img = img.convert('RGB')
    img.thumbnail((max_size, max_size))

    quality = 0.8
    while True:
        buf = io.BytesIO()
        img.save(buf, format='JPEG', quality=int(round(quality * 100)))
        data_url = Material.to_data_url(buf.getvalue(), 'image/jpeg')
        if len(data_url) <= max_chars or quality <= 0.1:
            return data_url
        quality -= 0.05


def upload_profile_image(user, file_storage):
    cfg = current_app.config
    data_url = encode_profile_image(file_storage.read(),
                                    cfg['PROFILE_IMAGE_MAX_SIZE'], cfg['PROFILE_IMAGE_MAX_CHARS'])
    dao.update_user(user.uid, {'profile_image': data_url})
    return data_url
