from flask_socketio import emit, join_room, leave_room

from atms import socketio
from atms.decorators import get_current_user, load_current_user
from atms.errors import ATMSError
from atms.services.feedback import participants, thread_room
from atms.services.notifications import user_room


def _get_socket_user():
    """Get current user from the Flask session context in Socket.IO events."""
    load_current_user()
    user = get_current_user()
    if user and user.is_authenticated:
        return user
    return None


def _feedback_room(user, data):
    counterpart_id = (data or {}).get('counterpart_id')
    if not counterpart_id:
        emit('error', {'message': 'counterpart_id is required'})
        return None
    try:
        trainer_id, trainee_id = participants(user, counterpart_id)
    except ATMSError as e:
        emit('error', {'message': e.message})
        return None
    return thread_room(trainer_id, trainee_id)


@socketio.on('connect')
def handle_connect():
    user = _get_socket_user()
    if not user:
        return False
    join_room(user_room(user.uid))
    emit('connected', {'user_id': user.uid, 'display_name': user.display_name})


@socketio.on('join_feedback')
def handle_join_feedback(data):
    user = _get_socket_user()
    if not user:
        return
    room = _feedback_room(user, data)
    if room:
        join_room(room)
        emit('feedback_joined', {'room': room})


@socketio.on('leave_feedback')
def handle_leave_feedback(data):
    user = _get_socket_user()
    if not user:
        return
    room = _feedback_room(user, data)
    if room:
        leave_room(room)
