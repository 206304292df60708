"""
Tests for course status derivation and reconciliation
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from atms import firestore_dao as dao
from atms.errors import BadRequestError
from atms.firestore_models import EnrollmentCourse
from atms.services import course_status


TODAY = date(2026, 3, 15)


class TestComputeCourseStatus:

    def test_no_trainer_is_draft(self):
        assert course_status.compute_course_status(
            False, TODAY - timedelta(days=1), TODAY + timedelta(days=1), TODAY) == 'draft'

    def test_in_range_is_active(self):
        assert course_status.compute_course_status(
            True, TODAY - timedelta(days=1), TODAY + timedelta(days=1), TODAY) == 'active'

    def test_not_started_is_active(self):
        assert course_status.compute_course_status(
            True, TODAY + timedelta(days=3), TODAY + timedelta(days=10), TODAY) == 'active'

    def test_past_end_is_completed(self):
        assert course_status.compute_course_status(
            True, TODAY - timedelta(days=10), TODAY - timedelta(days=1), TODAY) == 'completed'

    def test_end_date_itself_is_still_active(self):
        end = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert course_status.compute_course_status(True, end - timedelta(days=5), end, TODAY) == 'active'


class TestResolveInstructor:

    def test_match_is_case_and_whitespace_insensitive(self):
        trainers = [{'id': 't1', 'display_name': 'Grace Hopper'}]
        assert course_status.resolve_instructor('  grace HOPPER ', trainers)['id'] == 't1'

    def test_blank_name_never_matches(self):
        assert course_status.resolve_instructor('', [{'id': 't1', 'display_name': ''}]) is None

    def test_unknown_name(self):
        assert course_status.resolve_instructor('Ada', [{'id': 't1', 'display_name': 'Grace'}]) is None


class TestValidateCourseDates:

    period = {'train_start': date(2026, 1, 1), 'train_end': date(2026, 6, 30)}

    def test_inside_period(self):
        course_status.validate_course_dates(date(2026, 2, 1), date(2026, 3, 1), self.period)

    def test_start_before_period(self):
        with pytest.raises(BadRequestError, match='cannot be before session start'):
            course_status.validate_course_dates(date(2025, 12, 31), date(2026, 3, 1), self.period)

    def test_end_after_period(self):
        with pytest.raises(BadRequestError, match='cannot be after session end'):
            course_status.validate_course_dates(date(2026, 2, 1), date(2026, 7, 1), self.period)

    def test_end_before_start_without_period(self, app):
        with pytest.raises(BadRequestError, match='before start date'):
            course_status.validate_course_dates(date(2026, 3, 1), date(2026, 2, 1))


class TestApplyTrainerAndStatus:

    def test_cancelled_is_kept(self):
        data = {'instructor_name': 'Grace', 'status': 'cancelled',
                'start_date': TODAY, 'end_date': TODAY}
        course_status.apply_trainer_and_status(data, [{'id': 't1', 'display_name': 'Grace'}], TODAY)
        assert data['status'] == 'cancelled'
        assert data['instructor_id'] == 't1'

    def test_unmatched_instructor_clears_id(self):
        data = {'instructor_name': 'Nobody', 'instructor_id': 'old',
                'start_date': TODAY, 'end_date': TODAY}
        course_status.apply_trainer_and_status(data, [], TODAY)
        assert data['instructor_id'] == ''
        assert data['status'] == 'draft'


class TestExpireEntries:

    def test_only_active_past_entries_change(self):
        now = datetime(2026, 3, 15, 12, tzinfo=timezone.utc)
        entries = [
            {'course_id': 'a', 'status': 'active', 'end_date': now - timedelta(days=1)},
            {'course_id': 'b', 'status': 'active', 'end_date': now + timedelta(days=1)},
            {'course_id': 'c', 'status': 'draft', 'end_date': now - timedelta(days=1)},
        ]
        result, changed = course_status.expire_entries(entries, now)
        assert changed
        assert [e['status'] for e in result] == ['completed', 'active', 'draft']
        assert entries[0]['status'] == 'active'

    def test_nothing_to_expire(self):
        assert course_status.expire_entries([], None) == ([], False)


class TestReconciliation:

    def test_draft_course_picks_up_new_trainer(self, make_course, make_user, trainee, db):
        course = make_course(instructor_name='Ada Lovelace')
        assert course['status'] == 'draft'
        dao.save_enrollment(trainee['id'], [EnrollmentCourse.from_course(course).to_dict()])

        trainer = make_user('trainer', 'ada lovelace')
        assert course_status.reconcile_draft_courses() == [course['id']]

        stored = dao.get_course(course['id'])
        assert stored['instructor_id'] == trainer['id']
        assert stored['status'] == 'active'
        entry = dao.get_enrollment(trainee['id'])['courses'][0]
        assert entry['status'] == 'active'
        assert entry['instructor_id'] == trainer['id']

        log = dao.list_activity_logs(action='auto-updated')[0]
        assert log['user_name'] == 'System'
        assert 'Matched trainer ada lovelace' in log['details']

    def test_refresh_skips_cancelled(self, make_course, trainer):
        cancelled = make_course(title='Old', start=-30, end=-10, status='cancelled')
        finished = make_course(title='Done', start=-30, end=-10)
        dao.update_course(finished['id'], {'status': 'active'})

        updated = course_status.refresh_course_statuses()

        assert updated == [finished['id']]
        assert dao.get_course(finished['id'])['status'] == 'completed'
        assert dao.get_course(cancelled['id'])['status'] == 'cancelled'

    def test_remove_course_from_enrollments(self, make_course, trainer, trainee):
        keep = make_course(title='Keep')
        drop = make_course(title='Drop')
        dao.save_enrollment(trainee['id'], [EnrollmentCourse.from_course(c).to_dict() for c in (keep, drop)])

        assert course_status.remove_course_from_enrollments(drop['id']) == 1
        enrollment = dao.get_enrollment(trainee['id'])
        assert enrollment['course_ids'] == [keep['id']]

    def test_reconcile_all_expires_enrollments(self, make_course, trainer, trainee):
        course = make_course(start=-20, end=-1)
        entry = EnrollmentCourse.from_course(course).to_dict()
        entry['status'] = 'active'
        dao.save_enrollment(trainee['id'], [entry])

        summary = course_status.reconcile_all()

        assert summary['expired_enrollments'] == 1
        assert dao.get_enrollment(trainee['id'])['courses'][0]['status'] == 'completed'
