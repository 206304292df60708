"""Trainer <-> trainee feedback threads."""

import logging

from atms import firestore_dao as dao
from atms import socketio
from atms.errors import BadRequestError, NotFoundError, PermissionDeniedError
from atms.firestore_models import FeedbackMessage, normalize_name
from atms.services import enrollment
from atms.services.notifications import notify
from atms.utils import serialize, utcnow

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


def thread_room(trainer_id, trainee_id):
    return f'feedback_{trainer_id}_{trainee_id}'


def participants(user, counterpart_id):
    """Return (trainer_id, trainee_id) for a conversation the user may join."""
    if user.is_trainer():
        trainees = enrollment.trainees_of_trainer(user.uid)
        if counterpart_id not in trainees:
            raise PermissionDeniedError('This trainee is not enrolled in any of your courses.')
        return user.uid, counterpart_id
    if user.is_trainee():
        trainers = enrollment.trainers_of_trainee(user.uid)
        if counterpart_id not in trainers:
            raise PermissionDeniedError('You can only message trainers of your enrolled courses.')
        return counterpart_id, user.uid
    raise PermissionDeniedError('Only trainers and trainees can exchange feedback.')


def _clean(text):
    text = (text or '').strip()
    if not text:
        raise BadRequestError('Message cannot be empty.')
    if len(text) > MAX_MESSAGE_LENGTH:
        raise BadRequestError('Messages are limited to 2000 characters.')
    return text


def _emit(event, message):
    socketio.emit(event, serialize(message),
                  room=thread_room(message['trainer_id'], message['trainee_id']))


def send(user, counterpart_id, text):
    trainer_id, trainee_id = participants(user, counterpart_id)
    msg = FeedbackMessage(
        trainer_id=trainer_id,
        trainee_id=trainee_id,
        sender='trainer' if user.is_trainer() else 'trainee',
        message=_clean(text),
    )
    data = msg.to_dict()
    message_id = dao.create_feedback(data)
    data['id'] = message_id

    if msg.sender == 'trainer':
        notify(trainee_id, 'New reply from your trainer',
               f'{user.display_name} replied to your feedback.')
    else:
        notify(trainer_id, 'New trainee feedback',
               f'{user.display_name} sent you feedback.')
    _emit('feedback_message', data)
    logger.info('Feedback %s sent by %s', message_id, user.uid)
    return data


def _visible(messages, viewer_id):
    return [m for m in messages if viewer_id not in (m.get('hidden_for') or [])]


def thread(user, counterpart_id):
    trainer_id, trainee_id = participants(user, counterpart_id)
    return _visible(dao.get_feedback_thread(trainer_id, trainee_id), user.uid)


def threads_for_trainer(user):
    """One summary per trainee who has exchanged messages with the trainer."""
    summaries = {}
    for m in _visible(dao.get_feedback_by_trainer(user.uid), user.uid):
        s = summaries.setdefault(m['trainee_id'], {'trainee_id': m['trainee_id'], 'count': 0})
        s['count'] += 1
        s['last_message'] = m.get('message')
        s['last_sender'] = m.get('sender')
        s['last_at'] = m.get('created_at')
    for s in summaries.values():
        trainee = dao.get_user(s['trainee_id']) or {}
        s['trainee_name'] = trainee.get('display_name') or s['trainee_id']
    return sorted(summaries.values(), key=lambda s: s.get('last_at') or utcnow(), reverse=True)


def _own_message(user, message_id):
    message = dao.get_feedback(message_id)
    if not message:
        raise NotFoundError('Message not found')
    if user.uid not in (message.get('trainer_id'), message.get('trainee_id')):
        raise PermissionDeniedError('This message is not part of your conversations.')
    return message


def edit(user, message_id, text):
    message = _own_message(user, message_id)
    if FeedbackMessage.from_dict(message).sender_id() != user.uid:
        raise PermissionDeniedError('You can only edit your own messages.')
    changes = {'message': _clean(text), 'edited_at': utcnow()}
    dao.update_feedback(message_id, changes)
    message.update(changes)
    _emit('feedback_updated', message)
    return message


def delete(user, message_id):
    message = _own_message(user, message_id)
    if FeedbackMessage.from_dict(message).sender_id() != user.uid:
        raise PermissionDeniedError('You can only delete your own messages.')
    dao.delete_feedback(message_id)
    _emit('feedback_deleted', {'id': message_id, 'trainer_id': message['trainer_id'],
                               'trainee_id': message['trainee_id']})
    return message_id


def hide(user, message_id):
    """Hide a message from the user's own view of the thread."""
    _own_message(user, message_id)
    dao.hide_feedback(message_id, user.uid)
    return message_id


def search_trainers(user, query=''):
    """Trainers of the user's enrolled courses whose name contains query."""
    wanted = normalize_name(query)
    results = []
    for trainer_id, name in enrollment.trainers_of_trainee(user.uid).items():
        if wanted in normalize_name(name):
            results.append({'id': trainer_id, 'display_name': name})
    return sorted(results, key=lambda t: normalize_name(t['display_name']))
