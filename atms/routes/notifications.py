from flask import Blueprint, jsonify

from atms import firestore_dao as dao
from atms.decorators import auth_required, get_current_user
from atms.errors import NotFoundError

bp = Blueprint('notifications', __name__, url_prefix='/notifications')


@bp.route('/')
@auth_required
def list_notifications():
    user = get_current_user()
    return jsonify({
        'notifications': dao.get_notifications(user.uid),
        'unread': dao.count_unread_notifications(user.uid),
    })


@bp.route('/<notification_id>/read', methods=['POST'])
@auth_required
def mark_read(notification_id):
    user = get_current_user()
    notification = dao.get_notification(notification_id)
    if not notification or notification.get('user_id') != user.uid:
        raise NotFoundError('Notification not found')
    dao.mark_notification_read(notification_id)
    return jsonify({'success': True})


@bp.route('/read-all', methods=['POST'])
@auth_required
def mark_all_read():
    count = dao.mark_all_read(get_current_user().uid)
    return jsonify({'success': True, 'count': count})
