"""
Tests for grading and finalization
"""
import pytest

from atms import firestore_dao as dao
from atms.errors import NotFoundError, PermissionDeniedError
from atms.services import enrollment, grades


@pytest.fixture
def course(trainer, trainee, make_course, as_user):
    course = make_course()
    enrollment.enroll(as_user(trainee), course['id'])
    return course


def test_record_grade_upserts(trainer, trainee, course, as_user):
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 70, 'ok')
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 0, 'retake')

    stored = dao.get_grade(trainee['id'], course['id'])
    assert stored['score'] == 0
    assert stored['remarks'] == 'retake'
    assert len(dao.get_all_grades()) == 1


def test_trainer_must_teach_course(trainee, course, make_user, as_user):
    other = make_user('trainer', 'Alan Turing')
    with pytest.raises(PermissionDeniedError):
        grades.record_grade(as_user(other), trainee['id'], course['id'], 90)


def test_trainee_must_be_enrolled(trainer, course, make_user, as_user):
    stranger = make_user('trainee')
    with pytest.raises(PermissionDeniedError):
        grades.record_grade(as_user(trainer), stranger['id'], course['id'], 90)


def test_finalize_marks_grade_and_notifies(trainer, trainee, admin, course, as_user):
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 88)
    assert grades.unsaved_grade_count() == 1
    assert grades.grades_for_trainee(as_user(trainee))[0]['finalized'] is False

    grades.finalize(as_user(admin), trainee['id'], course['id'])

    assert grades.unsaved_grade_count() == 0
    assert grades.grades_for_trainer(as_user(trainer))[0]['finalized'] is True
    final = dao.get_final_grade(trainee['id'])
    assert final['courses'][0]['score'] == 88
    assert dao.get_notifications(trainee['id'])[0]['title'] == 'Grade finalized'


def test_finalize_twice_keeps_one_entry(trainer, trainee, admin, course, as_user):
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 60)
    grades.finalize(as_user(admin), trainee['id'], course['id'])
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 75)
    grades.finalize(as_user(admin), trainee['id'], course['id'])

    courses = dao.get_final_grade(trainee['id'])['courses']
    assert [c['score'] for c in courses] == [75]


def test_finalize_missing_grade(admin, as_user):
    with pytest.raises(NotFoundError):
        grades.finalize(as_user(admin), 'nobody', 'nothing')


def test_all_grades_carries_names(trainer, trainee, course, as_user):
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 95)
    row = grades.all_grades()[0]
    assert row['trainee_name'] == 'Tina Trainee'
    assert row['course_title'] == course['title']


def test_regrade_keeps_created_at(trainer, trainee, course, as_user):
    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 70)
    first = dao.get_grade(trainee['id'], course['id'])

    grades.record_grade(as_user(trainer), trainee['id'], course['id'], 85)
    second = dao.get_grade(trainee['id'], course['id'])

    assert second['score'] == 85
    assert second['created_at'] == first['created_at']
    assert second['updated_at'] >= first['updated_at']
