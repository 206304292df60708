import logging

from google.api_core.exceptions import GoogleAPIError

from atms import firestore_dao as dao

logger = logging.getLogger(__name__)


def log_activity(actor, action, target, details='', **extra):
    """Record an activity log entry.

    ``actor`` is the acting user (CurrentUser or user dict) or None for
    system-initiated changes. Failures are logged and never interrupt the
    caller's write.
    """
    if actor is None:
        entry = {'user_id': None, 'user_name': 'System', 'user_role': 'system'}
    else:
        entry = {
            'user_id': actor.get('uid'),
            'user_name': actor.get('display_name') or actor.get('email') or 'User',
            'user_role': actor.get('role'),
        }
    entry.update({
        'action': action,
        'target': target,
        'details': details or '',
    })
    entry.update(extra)
    try:
        return dao.create_activity_log(entry)
    except GoogleAPIError as e:
        logger.error('Failed to log activity %r on %r: %s', action, target, e)
        return None
