"""
Tests for training sessions, attendance and the trainee schedule
"""
from datetime import date, timedelta

import pytest

from atms.errors import PermissionDeniedError
from atms.services import enrollment, sessions


@pytest.fixture
def course(trainer, trainee, make_course, as_user):
    course = make_course()
    enrollment.enroll(as_user(trainee), course['id'])
    return course


def _schedule_class(trainer, course, topic, days):
    return sessions.create_training_session(trainer, course['id'], topic,
                                            date.today() + timedelta(days=days))


def test_schedule_lists_upcoming_first(trainer, trainee, course, as_user):
    _schedule_class(as_user(trainer), course, 'Recap', -3)
    _schedule_class(as_user(trainer), course, 'Loops', 5)
    _schedule_class(as_user(trainer), course, 'Functions', 1)
    _schedule_class(as_user(trainer), course, 'Setup', -10)

    items = sessions.schedule(as_user(trainee))

    assert [s['topic'] for s in items] == ['Functions', 'Loops', 'Recap', 'Setup']
    assert [s['upcoming'] for s in items] == [True, True, False, False]


def test_schedule_empty_without_enrollments(trainee, as_user):
    assert sessions.schedule(as_user(trainee)) == []


def test_session_only_for_own_course(course, make_user, as_user):
    other = make_user('trainer', 'Alan Turing')
    with pytest.raises(PermissionDeniedError):
        _schedule_class(as_user(other), course, 'Hijack', 1)
