from flask import Blueprint, jsonify, request

from atms import firestore_dao as dao
from atms.decorators import get_current_user, role_required
from atms.errors import NotFoundError, form_error
from atms.forms import CourseForm
from atms.services import courses
from atms.services.course_status import reconcile_all

bp = Blueprint('courses', __name__, url_prefix='/courses')


def _form_fields(form):
    return {
        'title': form.title.data,
        'instructor_name': form.instructor_name.data,
        'category': form.category.data,
        'level': form.level.data,
        'hours': form.hours.data,
        'duration': form.duration.data,
        'start_date': form.start_date.data,
        'end_date': form.end_date.data,
        'materials': form.materials.data,
        'status': form.status.data,
    }


@bp.route('/')
@role_required('admin')
def list_courses():
    return jsonify({'courses': courses.list_courses(
        request.args.get('search', ''), request.args.get('status', 'all'))})


@bp.route('/', methods=['POST'])
@role_required('admin')
def add_course():
    form = CourseForm()
    if not form.validate_on_submit():
        raise form_error(form, 'Please fill all required fields.')
    course = courses.add_course(get_current_user(), **_form_fields(form))
    return jsonify({'course': course, 'message': 'Course added successfully!'}), 201


@bp.route('/<course_id>')
@role_required('admin', 'trainer')
def view_course(course_id):
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')
    return jsonify(course)


@bp.route('/<course_id>', methods=['PUT'])
@role_required('admin')
def edit_course(course_id):
    form = CourseForm()
    if not form.validate_on_submit():
        raise form_error(form, 'Please fill all required fields.')
    course = courses.edit_course(get_current_user(), course_id, **_form_fields(form))
    return jsonify({'course': course, 'message': 'Course updated successfully!'})


@bp.route('/<course_id>', methods=['DELETE'])
@role_required('admin')
def delete_course(course_id):
    courses.delete_course(get_current_user(), course_id)
    return jsonify({'message': 'Course deleted.'})


@bp.route('/mine')
@role_required('trainer')
def my_courses():
    return jsonify({'courses': courses.my_courses(get_current_user())})


@bp.route('/reconcile', methods=['POST'])
@role_required('admin')
def reconcile():
    return jsonify(reconcile_all())
