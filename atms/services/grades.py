import logging

from atms import firestore_dao as dao
from atms.errors import NotFoundError, PermissionDeniedError
from atms.firestore_models import Grade
from atms.services.activity import log_activity
from atms.services.notifications import notify
from atms.utils import utcnow

logger = logging.getLogger(__name__)


def _finalized_keys():
    keys = set()
    for final in dao.get_all_final_grades():
        for c in final.get('courses', []):
            keys.add(Grade(trainee_id=final['trainee_id'], course_id=c.get('course_id')).key)
    return keys


def _with_flags(grades, finalized=None):
    finalized = _finalized_keys() if finalized is None else finalized
    for g in grades:
        g['finalized'] = g['id'] in finalized
    return grades


def record_grade(user, trainee_id, course_id, score, remarks=''):
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')
    if course.get('instructor_id') != user.uid:
        raise PermissionDeniedError('You can only grade your own courses.')
    if not dao.is_enrolled(trainee_id, course_id):
        raise PermissionDeniedError('This trainee is not enrolled in the course.')

    grade = Grade(trainee_id=trainee_id, course_id=course_id, trainer_id=user.uid,
                  score=float(score), remarks=remarks or '')
    grade_id = dao.save_grade(grade.to_dict())
    log_activity(user, 'graded', f"course: {course.get('title')}",
                 f'Score: {grade.score:g}', course_id=course_id)
    data = grade.to_dict()
    data['id'] = grade_id
    return data


def grades_for_trainer(user):
    return _with_flags(dao.get_grades_by_trainer(user.uid))


def grades_for_trainee(user):
    return _with_flags(dao.get_grades_by_trainee(user.uid))


def all_grades():
    """Every grade with trainee and course names, for the admin view."""
    grades = _with_flags(dao.get_all_grades())
    names = {}
    titles = {}
    for g in grades:
        if g['trainee_id'] not in names:
            trainee = dao.get_user(g['trainee_id']) or {}
            names[g['trainee_id']] = trainee.get('display_name', '')
        if g['course_id'] not in titles:
            course = dao.get_course(g['course_id']) or {}
            titles[g['course_id']] = course.get('title', '')
        g['trainee_name'] = names[g['trainee_id']]
        g['course_title'] = titles[g['course_id']]
    return grades


def finalize(user, trainee_id, course_id):
    """Copy a recorded grade into the trainee's final grades."""
    grade = dao.get_grade(trainee_id, course_id)
    if not grade:
        raise NotFoundError('Grade not found')

    final = dao.get_final_grade(trainee_id) or {}
    courses = [c for c in final.get('courses', []) if c.get('course_id') != course_id]
    courses.append({
        'course_id': course_id,
        'score': grade.get('score'),
        'finalized_at': utcnow(),
        'finalized_by': user.uid,
    })
    dao.save_final_grade(trainee_id, courses)

    course = dao.get_course(course_id) or {}
    title = course.get('title', course_id)
    notify(trainee_id, 'Grade finalized',
           f"Your grade for {title} has been finalized: {grade.get('score')}", type='success')
    log_activity(user, 'finalized grade', f'course: {title}', course_id=course_id)
    logger.info('Finalized grade %s_%s', trainee_id, course_id)
    return courses


def unsaved_grade_count():
    """Number of recorded grades not yet copied to final grades."""
    finalized = _finalized_keys()
    return sum(1 for g in dao.get_all_grades() if g['id'] not in finalized)
