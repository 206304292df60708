import logging

from atms import firestore_dao as dao
from atms.errors import NotFoundError, PermissionDeniedError
from atms.firestore_models import Attendee, TrainingSession
from atms.services.activity import log_activity
from atms.services.enrollment import enrolled_course_ids
from atms.services.notifications import notify
from atms.utils import as_utc_datetime, utcnow

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Training periods (admin)
# ---------------------------------------------------------------------------

def _period_payload(title, reg_start, reg_end, train_start, train_end):
    return {
        'title': title,
        'reg_start': as_utc_datetime(reg_start),
        'reg_end': as_utc_datetime(reg_end),
        'train_start': as_utc_datetime(train_start),
        'train_end': as_utc_datetime(train_end),
    }


def create_period(user, **fields):
    data = _period_payload(**fields)
    period_id = dao.create_period(data)
    log_activity(user, 'added session', f"session: {data['title']}")
    data['id'] = period_id
    return data


def update_period(user, period_id, **fields):
    if not dao.get_period(period_id):
        raise NotFoundError('Session not found')
    data = _period_payload(**fields)
    dao.update_period(period_id, data)
    log_activity(user, 'edited session', f"session: {data['title']}")
    data['id'] = period_id
    return data


def delete_period(user, period_id):
    period = dao.get_period(period_id)
    if not period:
        raise NotFoundError('Session not found')
    dao.delete_period(period_id)
    log_activity(user, 'deleted session', f"session: {period.get('title', period_id)}")


# ---------------------------------------------------------------------------
# Training sessions (trainer)
# ---------------------------------------------------------------------------

def create_training_session(user, course_id, topic, date, description=None, location=None,
                            hours=0, train_start=None, train_end=None):
    """Schedule a class for one of the trainer's courses.

    The attendee list starts with every enrolled student and no status.
    """
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')
    if course.get('instructor_id') != user.uid:
        raise PermissionDeniedError('You can only schedule sessions for your own courses.')

    students = dao.get_users_by_ids(course.get('students', []))
    session = TrainingSession(
        course_id=course_id,
        course_name=course.get('title', ''),
        trainer_id=user.uid,
        topic=topic,
        description=description,
        location=location,
        date=as_utc_datetime(date),
        hours=hours or 0,
        train_start=as_utc_datetime(train_start),
        train_end=as_utc_datetime(train_end),
        attendees=[Attendee(student_id=s['id'], student_name=s.get('display_name', ''))
                   for s in students],
    )
    data = session.to_dict()
    session_id = dao.create_training_session(data)
    data['id'] = session_id

    for s in students:
        notify(s['id'], 'New session scheduled',
               f"{topic} for {session.course_name} on {session.date:%Y-%m-%d}")
    log_activity(user, 'scheduled session', f'{topic} ({session.course_name})', course_id=course_id)
    return data


def my_training_sessions(user):
    return dao.get_training_sessions_by_trainer(user.uid)


def _own_session(user, session_id):
    session = dao.get_training_session(session_id)
    if not session:
        raise NotFoundError('Session not found')
    if session.get('trainer_id') != user.uid:
        raise PermissionDeniedError('This session belongs to another trainer.')
    return session


def delete_training_session(user, session_id):
    session = _own_session(user, session_id)
    dao.delete_training_session(session_id)
    log_activity(user, 'deleted session', session.get('topic', session_id),
                 course_id=session.get('course_id'))


def mark_attendance(user, session_id, student_id, status):
    session = _own_session(user, session_id)
    attendees = session.get('attendees', [])
    for a in attendees:
        if a.get('student_id') == student_id:
            a['status'] = status
            break
    else:
        raise NotFoundError('Trainee is not on this session.')
    dao.update_training_session(session_id, {'attendees': attendees})
    session['attendees'] = attendees
    return session


def schedule(user, now=None):
    """Sessions of the user's enrolled courses, upcoming ones first."""
    now = now or utcnow()
    course_ids = enrolled_course_ids(user.uid)
    if not course_ids:
        return []
    sessions = dao.get_training_sessions_by_courses(course_ids)
    upcoming = [s for s in sessions if (as_utc_datetime(s.get('date')) or now) >= now]
    past = [s for s in sessions if (as_utc_datetime(s.get('date')) or now) < now]
    upcoming.sort(key=lambda s: as_utc_datetime(s.get('date')) or now)
    past.sort(key=lambda s: as_utc_datetime(s.get('date')) or now, reverse=True)
    for s in upcoming:
        s['upcoming'] = True
    for s in past:
        s['upcoming'] = False
    return upcoming + past
