import logging
from datetime import datetime, timezone

from atms import firestore_dao as dao
from atms.errors import BadRequestError, ConflictError, NotFoundError
from atms.firestore_models import Course, EnrollmentCourse
from atms.services.activity import log_activity
from atms.services.course_status import expire_enrollment
from atms.utils import as_utc_datetime, utcnow

logger = logging.getLogger(__name__)

ENROLLABLE_STATUSES = ('active', 'draft')


def browse_courses(status=None):
    """Courses a trainee or pending user may enrol in."""
    if status:
        if status not in ENROLLABLE_STATUSES:
            return []
        return dao.get_courses_by_status(status)
    courses = []
    for s in ENROLLABLE_STATUSES:
        courses.extend(dao.get_courses_by_status(s))
    return courses


def my_enrollments(user_id):
    """Enrollment entries of a user, with lapsed ones marked completed."""
    enrollment = expire_enrollment(user_id)
    if not enrollment:
        return []
    return enrollment.get('courses', [])


def enrolled_course_ids(user_id):
    enrollment = dao.get_enrollment(user_id)
    if not enrollment:
        return []
    return list(enrollment.get('course_ids', []))


def enroll(user, course_id):
    """Add a denormalised copy of the course to the user's enrollment."""
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')

    enrollment = dao.get_enrollment(user.uid)
    entries = enrollment.get('courses', []) if enrollment else []
    if any(e.get('course_id') == course_id for e in entries):
        raise ConflictError('Already enrolled!')

    if not Course.from_dict(course).is_enrollable():
        raise BadRequestError(f"This course is {course.get('status')} and no longer accepts enrollments.")

    entry = EnrollmentCourse.from_course(course).to_dict()
    dao.save_enrollment(user.uid, entries + [entry])
    dao.add_course_student(course_id, user.uid)
    log_activity(user, 'enrolled', f"course: {course.get('title')}", course_id=course_id)
    logger.info('User %s enrolled in course %s', user.uid, course_id)
    return entry


def unenroll(user, course_id):
    """Remove a course from the user's enrollment. Missing entries are a no-op."""
    enrollment = dao.get_enrollment(user.uid)
    if not enrollment:
        return False
    entries = enrollment.get('courses', [])
    remaining = [e for e in entries if e.get('course_id') != course_id]
    if len(remaining) == len(entries):
        return False
    dao.save_enrollment(user.uid, remaining)
    if dao.get_course(course_id):
        dao.remove_course_student(course_id, user.uid)
    log_activity(user, 'unenrolled', f'course: {course_id}', course_id=course_id)
    return True


def recent_courses(user_id, count=2):
    entries = my_enrollments(user_id)
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(
        entries,
        key=lambda e: as_utc_datetime(e.get('enrolled_at')) or epoch,
        reverse=True,
    )[:count]


def active_trainer(user_id):
    """Instructor of the first active enrolled course, or None."""
    for entry in my_enrollments(user_id):
        if (entry.get('status') or '').lower() == 'active' and entry.get('instructor_id'):
            return {'id': entry['instructor_id'], 'display_name': entry.get('instructor_name', '')}
    return None


def course_progress(user_id, course_id, now=None):
    """Share of held training sessions of a course the user attended."""
    now = now or utcnow()
    sessions = dao.get_training_sessions_by_course(course_id)
    held = [s for s in sessions if (as_utc_datetime(s.get('date')) or now) <= now]
    attended = 0
    completed_ids = []
    for s in held:
        for a in s.get('attendees', []):
            if a.get('student_id') == user_id and a.get('status') == 'present':
                attended += 1
                completed_ids.append(s['id'])
                break
    progress = round(attended * 100 / len(held)) if held else 0
    course = dao.get_course(course_id) or {}
    return {
        'course_id': course_id,
        'completed_sessions': completed_ids,
        'held_sessions': len(held),
        'progress': progress,
        'certificate_issued': course.get('status') == 'completed' and progress == 100,
    }


def trainees_of_trainer(trainer_id):
    """Map of trainee uid -> list of course ids taught by the trainer."""
    result = {}
    for course in dao.get_courses_by_instructor(trainer_id):
        for uid in course.get('students', []):
            result.setdefault(uid, []).append(course['id'])
    return result


def trainers_of_trainee(user_id):
    """Map of trainer uid -> instructor name for the user's enrolled courses."""
    result = {}
    for entry in my_enrollments(user_id):
        if entry.get('instructor_id'):
            result[entry['instructor_id']] = entry.get('instructor_name', '')
    return result
