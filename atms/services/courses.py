import logging

from atms import firestore_dao as dao
from atms.errors import NotFoundError
from atms.services.activity import log_activity
from atms.services.course_status import (
    apply_trainer_and_status, propagate_course, remove_course_from_enrollments,
    validate_course_dates,
)
from atms.utils import as_utc_datetime

logger = logging.getLogger(__name__)

COURSE_FIELDS = ('title', 'instructor_name', 'category', 'level', 'hours', 'duration',
                 'start_date', 'end_date', 'materials')


def list_courses(search='', status='all'):
    """Newest courses, filtered by a case-insensitive search and a status."""
    courses = dao.list_courses()
    if status and status != 'all':
        courses = [c for c in courses if c.get('status') == status]
    term = (search or '').strip().lower()
    if term:
        courses = [c for c in courses
                   if term in (c.get('title') or '').lower()
                   or term in (c.get('instructor_name') or '').lower()]
    return courses


def _payload(fields, status=None):
    validate_course_dates(fields['start_date'], fields['end_date'])
    data = {k: fields.get(k) for k in COURSE_FIELDS}
    data['start_date'] = as_utc_datetime(fields['start_date'])
    data['end_date'] = as_utc_datetime(fields['end_date'])
    data['hours'] = data['hours'] or 0
    data['duration'] = data['duration'] or 0
    data['materials'] = list(data['materials'] or [])
    data['category'] = data['category'] or ''
    if status == 'cancelled':
        data['status'] = status
    return apply_trainer_and_status(data)


def add_course(user, **fields):
    data = _payload(fields, fields.get('status'))
    course_id = dao.create_course(data)
    log_activity(user, 'added course', f"course: {data['title']}", course_id=course_id)
    logger.info('Course %s created with status %s', course_id, data['status'])
    data['id'] = course_id
    return data


def edit_course(user, course_id, **fields):
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')
    data = _payload(fields, fields.get('status'))
    dao.update_course(course_id, data)
    course.update(data)
    propagate_course(course)
    log_activity(user, 'edited course', f"course: {data['title']}", course_id=course_id)
    return course


def delete_course(user, course_id):
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')
    dao.delete_course(course_id)
    removed = remove_course_from_enrollments(course_id)
    log_activity(user, 'deleted course', f"course: {course.get('title')}", course_id=course_id)
    logger.info('Deleted course %s and removed it from %d enrollment(s)', course_id, removed)


def my_courses(user):
    """Courses taught by the trainer with their enrolled-student counts."""
    courses = dao.get_courses_by_instructor(user.uid)
    for c in courses:
        c['student_count'] = len(c.get('students', []))
    return courses
