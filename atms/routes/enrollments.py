from flask import Blueprint, jsonify, request

from atms.decorators import get_current_user, role_required
from atms.errors import form_error
from atms.forms import EnrollForm
from atms.services import enrollment

bp = Blueprint('enrollments', __name__, url_prefix='/enrollments')

LEARNER_ROLES = ('trainee', 'pending', 'user')


@bp.route('/browse')
@role_required(*LEARNER_ROLES)
def browse():
    user = get_current_user()
    enrolled = set(enrollment.enrolled_course_ids(user.uid))
    courses = enrollment.browse_courses(request.args.get('status'))
    for c in courses:
        c['enrolled'] = c['id'] in enrolled
    return jsonify({'courses': courses})


@bp.route('/')
@role_required(*LEARNER_ROLES)
def my_enrollments():
    user = get_current_user()
    return jsonify({
        'courses': enrollment.my_enrollments(user.uid),
        'trainer': enrollment.active_trainer(user.uid),
    })


@bp.route('/recent')
@role_required(*LEARNER_ROLES)
def recent():
    return jsonify({'courses': enrollment.recent_courses(get_current_user().uid)})


@bp.route('/', methods=['POST'])
@role_required(*LEARNER_ROLES)
def enroll():
    form = EnrollForm()
    if not form.validate_on_submit():
        raise form_error(form)
    entry = enrollment.enroll(get_current_user(), form.course_id.data)
    return jsonify({'enrollment': entry, 'message': 'Enrolled successfully!'}), 201


@bp.route('/<course_id>', methods=['DELETE'])
@role_required(*LEARNER_ROLES)
def unenroll(course_id):
    removed = enrollment.unenroll(get_current_user(), course_id)
    return jsonify({'removed': removed})


@bp.route('/<course_id>/progress')
@role_required('trainee')
def progress(course_id):
    return jsonify(enrollment.course_progress(get_current_user().uid, course_id))
