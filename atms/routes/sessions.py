from flask import Blueprint, jsonify

from atms import firestore_dao as dao
from atms.decorators import get_current_user, role_required
from atms.errors import form_error
from atms.forms import AttendanceForm, PeriodForm, TrainingSessionForm
from atms.services import sessions

bp = Blueprint('sessions', __name__, url_prefix='/sessions')


def _period_fields(form):
    return {
        'title': form.title.data,
        'reg_start': form.reg_start.data,
        'reg_end': form.reg_end.data,
        'train_start': form.train_start.data,
        'train_end': form.train_end.data,
    }


# -- Training periods ------------------------------------------------------

@bp.route('/periods')
@role_required('admin', 'trainer')
def list_periods():
    return jsonify({'periods': dao.list_periods()})


@bp.route('/periods', methods=['POST'])
@role_required('admin')
def create_period():
    form = PeriodForm()
    if not form.validate_on_submit():
        raise form_error(form)
    period = sessions.create_period(get_current_user(), **_period_fields(form))
    return jsonify({'period': period, 'message': 'Session added successfully!'}), 201


@bp.route('/periods/<period_id>', methods=['PUT'])
@role_required('admin')
def update_period(period_id):
    form = PeriodForm()
    if not form.validate_on_submit():
        raise form_error(form)
    period = sessions.update_period(get_current_user(), period_id, **_period_fields(form))
    return jsonify({'period': period, 'message': 'Session updated successfully!'})


@bp.route('/periods/<period_id>', methods=['DELETE'])
@role_required('admin')
def delete_period(period_id):
    sessions.delete_period(get_current_user(), period_id)
    return jsonify({'message': 'Session deleted.'})


# -- Training sessions -----------------------------------------------------

@bp.route('/')
@role_required('trainer')
def my_sessions():
    return jsonify({'sessions': sessions.my_training_sessions(get_current_user())})


@bp.route('/', methods=['POST'])
@role_required('trainer')
def create_session():
    form = TrainingSessionForm()
    if not form.validate_on_submit():
        raise form_error(form)
    session = sessions.create_training_session(
        get_current_user(),
        course_id=form.course_id.data,
        topic=form.topic.data,
        date=form.date.data,
        description=form.description.data,
        location=form.location.data,
        hours=form.hours.data,
        train_start=form.train_start.data,
        train_end=form.train_end.data,
    )
    return jsonify({'session': session, 'message': 'Session scheduled.'}), 201


@bp.route('/<session_id>', methods=['DELETE'])
@role_required('trainer')
def delete_session(session_id):
    sessions.delete_training_session(get_current_user(), session_id)
    return jsonify({'message': 'Session deleted.'})


@bp.route('/<session_id>/attendance', methods=['POST'])
@role_required('trainer')
def mark_attendance(session_id):
    form = AttendanceForm()
    if not form.validate_on_submit():
        raise form_error(form)
    session = sessions.mark_attendance(get_current_user(), session_id,
                                       form.student_id.data, form.status.data)
    return jsonify({'session': session})


@bp.route('/schedule')
@role_required('trainee')
def schedule():
    return jsonify({'sessions': sessions.schedule(get_current_user())})
