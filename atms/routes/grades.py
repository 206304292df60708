from flask import Blueprint, jsonify

from atms.decorators import get_current_user, role_required
from atms.errors import form_error
from atms.forms import FinalizeGradeForm, GradeForm
from atms.services import grades

bp = Blueprint('grades', __name__, url_prefix='/grades')


@bp.route('/')
@role_required('admin', 'trainer', 'trainee')
def list_grades():
    user = get_current_user()
    if user.is_admin():
        result = grades.all_grades()
    elif user.is_trainer():
        result = grades.grades_for_trainer(user)
    else:
        result = grades.grades_for_trainee(user)
    return jsonify({'grades': result})


@bp.route('/', methods=['POST'])
@role_required('trainer')
def record():
    form = GradeForm()
    if not form.validate_on_submit():
        raise form_error(form)
    grade = grades.record_grade(get_current_user(), form.trainee_id.data, form.course_id.data,
                                form.score.data, form.remarks.data)
    return jsonify({'grade': grade, 'message': 'Grade saved.'}), 201


@bp.route('/finalize', methods=['POST'])
@role_required('admin')
def finalize():
    form = FinalizeGradeForm()
    if not form.validate_on_submit():
        raise form_error(form)
    courses = grades.finalize(get_current_user(), form.trainee_id.data, form.course_id.data)
    return jsonify({'trainee_id': form.trainee_id.data, 'courses': courses})
