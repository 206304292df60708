from flask import Blueprint, jsonify

from atms import firestore_dao as dao
from atms.decorators import auth_required, get_current_user, role_required
from atms.errors import form_error
from atms.forms import (ApprovePendingForm, ProfileForm, ProfileImageForm, UserCreateForm,
                        UserEditForm)
from atms.services import users

bp = Blueprint('users', __name__, url_prefix='/users')


@bp.route('/')
@role_required('admin')
def list_users():
    return jsonify({'users': dao.list_users()})


@bp.route('/', methods=['POST'])
@role_required('admin')
def add_user():
    form = UserCreateForm()
    if not form.validate_on_submit():
        raise form_error(form)
    uid = users.add_user(get_current_user(), form.display_name.data, form.email.data,
                         form.password.data, form.role.data)
    return jsonify({'uid': uid, 'message': 'User added successfully!'}), 201


@bp.route('/<uid>', methods=['PUT'])
@role_required('admin')
def edit_user(uid):
    form = UserEditForm()
    if not form.validate_on_submit():
        raise form_error(form)
    user = users.edit_user(get_current_user(), uid, form.display_name.data,
                           form.email.data, form.role.data)
    return jsonify({'user': user, 'message': 'User updated successfully!'})


@bp.route('/<uid>', methods=['DELETE'])
@role_required('admin')
def delete_user(uid):
    users.delete_user(get_current_user(), uid)
    return jsonify({'message': 'User deleted.'})


@bp.route('/pending')
@role_required('admin')
def pending():
    return jsonify({'pending_users': users.list_pending()})


@bp.route('/pending/<uid>/approve', methods=['POST'])
@role_required('admin')
def approve(uid):
    form = ApprovePendingForm()
    if not form.validate_on_submit():
        raise form_error(form)
    role = users.approve_pending(get_current_user(), uid, form.role.data or None)
    return jsonify({'uid': uid, 'role': role, 'message': 'User approved.'})


@bp.route('/pending/<uid>/reject', methods=['POST'])
@role_required('admin')
def reject(uid):
    users.reject_pending(get_current_user(), uid)
    return jsonify({'uid': uid, 'message': 'Request rejected.'})


@bp.route('/profile')
@auth_required
def profile():
    return jsonify(get_current_user().to_dict())


@bp.route('/profile', methods=['PUT'])
@auth_required
def update_profile():
    form = ProfileForm()
    if not form.validate_on_submit():
        raise form_error(form)
    data = users.update_profile(get_current_user(), form.display_name.data, form.email.data)
    return jsonify({'profile': data, 'message': 'Profile updated.'})


@bp.route('/profile/image', methods=['POST'])
@auth_required
def profile_image():
    form = ProfileImageForm()
    if not form.validate_on_submit():
        raise form_error(form)
    data_url = users.upload_profile_image(get_current_user(), form.image.data)
    return jsonify({'profile_image': data_url})
