import logging

from atms import firestore_dao as dao
from atms import socketio
from atms.firestore_models import NOTIFICATION_TYPES
from atms.utils import serialize

logger = logging.getLogger(__name__)


def user_room(user_id):
    return f'user_{user_id}'


def notify(user_id, title, message, type='info'):
    """Store a notification and push it to the user's socket room."""
    if not user_id:
        return None
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f'Unknown notification type: {type}')
    data = {
        'user_id': user_id,
        'title': title,
        'message': message,
        'type': type,
    }
    notification_id = dao.create_notification(data)
    data['id'] = notification_id
    socketio.emit('notification', serialize(data), room=user_room(user_id))
    logger.debug('Notified %s: %s', user_id, title)
    return notification_id


def badges(user):
    """Counters shown in the navigation bar."""
    counts = {'notifications': dao.count_unread_notifications(user.uid)}
    if user.is_admin():
        from atms.services.grades import unsaved_grade_count
        counts['pending_users'] = dao.count_pending_users()
        counts['unsaved_grades'] = unsaved_grade_count()
    return counts
