from flask import Blueprint, jsonify, request

from atms.decorators import get_current_user, role_required
from atms.errors import BadRequestError, form_error
from atms.forms import FeedbackEditForm, FeedbackForm
from atms.services import enrollment, feedback

bp = Blueprint('feedback', __name__, url_prefix='/feedback')


@bp.route('/threads')
@role_required('trainer')
def threads():
    return jsonify({'threads': feedback.threads_for_trainer(get_current_user())})


@bp.route('/trainers')
@role_required('trainee')
def search_trainers():
    user = get_current_user()
    return jsonify({
        'trainers': feedback.search_trainers(user, request.args.get('q', '')),
        'default': enrollment.active_trainer(user.uid),
    })


@bp.route('/with/<counterpart_id>')
@role_required('trainer', 'trainee')
def thread(counterpart_id):
    messages = feedback.thread(get_current_user(), counterpart_id)
    return jsonify({'messages': messages})


@bp.route('/', methods=['POST'])
@role_required('trainer', 'trainee')
def send():
    user = get_current_user()
    form = FeedbackForm()
    if not form.validate_on_submit():
        raise form_error(form)
    recipient_id = form.recipient_id.data
    if not recipient_id and user.is_trainee():
        trainer = enrollment.active_trainer(user.uid)
        recipient_id = trainer['id'] if trainer else None
    if not recipient_id:
        raise BadRequestError('Select who to send the message to.')
    message = feedback.send(user, recipient_id, form.message.data)
    return jsonify({'message': message}), 201


@bp.route('/<message_id>', methods=['PUT'])
@role_required('trainer', 'trainee')
def edit(message_id):
    form = FeedbackEditForm()
    if not form.validate_on_submit():
        raise form_error(form)
    message = feedback.edit(get_current_user(), message_id, form.message.data)
    return jsonify({'message': message})


@bp.route('/<message_id>', methods=['DELETE'])
@role_required('trainer', 'trainee')
def delete(message_id):
    feedback.delete(get_current_user(), message_id)
    return jsonify({'deleted': message_id})


@bp.route('/<message_id>/hide', methods=['POST'])
@role_required('trainer', 'trainee')
def hide(message_id):
    feedback.hide(get_current_user(), message_id)
    return jsonify({'hidden': message_id})
