from flask import Blueprint, jsonify

from atms.decorators import auth_required, get_current_user
from atms.services import dashboard
from atms.services.notifications import badges as nav_badges

bp = Blueprint('main', __name__)


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'}), 200


@bp.route('/menu')
@auth_required
def menu():
    user = get_current_user()
    return jsonify({'role': user.role, 'sections': dashboard.menu(user.role)})


@bp.route('/dashboard')
@auth_required
def dashboard_overview():
    user = get_current_user()
    return jsonify({
        'role': user.role,
        'sections': dashboard.menu(user.role),
        'overview': dashboard.overview(user),
    })


@bp.route('/badges')
@auth_required
def badges():
    return jsonify(nav_badges(get_current_user()))
