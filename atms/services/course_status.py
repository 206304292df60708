"""
Course status derivation and its propagation to enrollments.

A course is ``draft`` until a trainer is matched by instructor name,
``completed`` once its end date has passed and ``active`` otherwise.
``cancelled`` is only ever set by an admin and is never recomputed.
Every write path (course create/edit, user promotion or rename, the
``reconcile-statuses`` command) goes through this module so there is a
single place where course and enrollment statuses are derived.
"""

import logging
from datetime import date, datetime

from atms import firestore_dao as dao
from atms.errors import BadRequestError
from atms.firestore_models import Course, EnrollmentCourse, normalize_name
from atms.services.activity import log_activity
from atms.utils import as_utc_datetime, utcnow

logger = logging.getLogger(__name__)


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def compute_course_status(trainer_exists, start_date, end_date, today=None):
    """Derive a course status from trainer assignment and its date range.

    Courses that have not started yet are reported as ``active`` too, so
    trainees can enrol ahead of the start date.
    """
    if not trainer_exists:
        return 'draft'
    today = _as_date(today) or date.today()
    end = _as_date(end_date)
    if end is not None and today > end:
        return 'completed'
    return 'active'


def resolve_instructor(instructor_name, trainers=None):
    """Return the trainer whose display name matches, or None."""
    wanted = normalize_name(instructor_name)
    if not wanted:
        return None
    if trainers is None:
        trainers = dao.get_users_by_role('trainer')
    for trainer in trainers:
        if normalize_name(trainer.get('display_name')) == wanted:
            return trainer
    return None


def validate_course_dates(start_date, end_date, period=None):
    """Check a course's dates against the latest training period."""
    start = _as_date(start_date)
    end = _as_date(end_date)
    if period is None:
        period = dao.get_latest_period()
    if period:
        train_start = _as_date(period.get('train_start'))
        train_end = _as_date(period.get('train_end'))
        if train_start and start < train_start:
            raise BadRequestError(
                f'Course start date cannot be before session start: {train_start:%a %b %d %Y}')
        if train_end and end > train_end:
            raise BadRequestError(
                f'Course end date cannot be after session end: {train_end:%a %b %d %Y}')
    if end < start:
        raise BadRequestError('Course end date cannot be before start date.')


def apply_trainer_and_status(data, trainers=None, today=None):
    """Fill instructor_id and status on a course payload in place."""
    trainer = resolve_instructor(data.get('instructor_name'), trainers)
    data['instructor_id'] = trainer['id'] if trainer else ''
    if data.get('status') != 'cancelled':
        data['status'] = compute_course_status(
            bool(trainer), data.get('start_date'), data.get('end_date'), today)
    return data


def propagate_course(course):
    """Copy a course's denormalised fields into every enrollment holding it.

    Returns the number of enrollment documents rewritten.
    """
    fresh = EnrollmentCourse.from_course(course).to_dict()
    changed = []
    for enrollment in dao.get_enrollments_by_course(course['id']):
        dirty = False
        entries = []
        for entry in enrollment.get('courses', []):
            if entry.get('course_id') == course['id']:
                updated = dict(entry)
                for key in EnrollmentCourse.COPIED_FIELDS:
                    updated[key] = fresh[key]
                if updated != entry:
                    dirty = True
                entry = updated
            entries.append(entry)
        if dirty:
            changed.append({'user_id': enrollment['user_id'], 'courses': entries})
    if changed:
        dao.save_enrollments(changed)
        logger.info('Propagated course %s to %d enrollment(s)', course['id'], len(changed))
    return len(changed)


def remove_course_from_enrollments(course_id):
    changed = []
    for enrollment in dao.get_enrollments_by_course(course_id):
        entries = [c for c in enrollment.get('courses', []) if c.get('course_id') != course_id]
        changed.append({'user_id': enrollment['user_id'], 'courses': entries})
    if changed:
        dao.save_enrollments(changed)
    return len(changed)


def expire_entries(entries, now=None):
    """Mark active entries whose end date has passed as completed.

    Returns (entries, changed) without touching the database.
    """
    now = now or utcnow()
    changed = False
    result = []
    for entry in entries:
        end = as_utc_datetime(entry.get('end_date'))
        if end is not None and end < now and entry.get('status') == 'active':
            entry = dict(entry, status='completed')
            changed = True
        result.append(entry)
    return result, changed


def expire_enrollment(user_id, now=None):
    """Persist completion of a user's lapsed enrollment entries."""
    enrollment = dao.get_enrollment(user_id)
    if not enrollment:
        return None
    entries, changed = expire_entries(enrollment.get('courses', []), now)
    if changed:
        dao.save_enrollment(user_id, entries)
        enrollment['courses'] = entries
    return enrollment


def reconcile_draft_courses(today=None):
    """Attach trainers to draft courses that now match one by name."""
    trainers = dao.get_users_by_role('trainer')
    if not trainers:
        return []
    updated = []
    for course in dao.get_courses_by_status('draft'):
        trainer = resolve_instructor(course.get('instructor_name'), trainers)
        if not trainer:
            continue
        status = compute_course_status(True, course.get('start_date'), course.get('end_date'), today)
        dao.update_course(course['id'], {'instructor_id': trainer['id'], 'status': status})
        course.update(instructor_id=trainer['id'], status=status)
        propagate_course(course)
        log_activity(
            None, 'auto-updated', f"course: {course.get('title') or course['id']}",
            f"Matched trainer {trainer.get('display_name')} and set instructor_id, status={status}",
            course_id=course['id'],
        )
        updated.append(course['id'])
    if updated:
        logger.info('Matched trainers for %d draft course(s)', len(updated))
    return updated


def refresh_course_statuses(today=None):
    """Recompute the status of every non-cancelled course."""
    updated = []
    for course in dao.get_all_courses():
        if course.get('status') == 'cancelled':
            continue
        c = Course.from_dict(course)
        status = compute_course_status(c.has_trainer, c.start_date, c.end_date, today)
        if status != course.get('status'):
            dao.update_course(course['id'], {'status': status})
            course['status'] = status
            propagate_course(course)
            updated.append(course['id'])
    return updated


def reconcile_all(today=None, now=None):
    """Run every reconciliation step once. Returns a summary dict."""
    matched = reconcile_draft_courses(today)
    refreshed = refresh_course_statuses(today)
    expired = 0
    for enrollment in dao.get_all_enrollments():
        entries, changed = expire_entries(enrollment.get('courses', []), now)
        if changed:
            dao.save_enrollment(enrollment['user_id'], entries)
            expired += 1
    summary = {'matched_drafts': len(matched), 'status_changes': len(refreshed),
               'expired_enrollments': expired}
    logger.info('Reconciliation finished: %s', summary)
    return summary
