"""
Tests for trainer/trainee feedback messaging
"""
import pytest

from atms import firestore_dao as dao
from atms.errors import BadRequestError, NotFoundError, PermissionDeniedError
from atms.services import enrollment, feedback


@pytest.fixture
def pair(trainer, trainee, make_course, as_user):
    """A trainee enrolled in one of the trainer's courses"""
    course = make_course()
    enrollment.enroll(as_user(trainee), course['id'])
    return as_user(trainer), as_user(trainee)


def test_trainee_sends_to_trainer(pair, trainer, trainee):
    trainer_user, trainee_user = pair
    msg = feedback.send(trainee_user, trainer['id'], '  Could we go over loops?  ')

    assert msg['message'] == 'Could we go over loops?'
    assert msg['sender'] == 'trainee'
    assert msg['trainer_id'] == trainer['id']
    notifications = dao.get_notifications(trainer['id'])
    assert notifications[0]['title'] == 'New trainee feedback'


def test_trainer_reply_notifies_trainee(pair, trainee):
    trainer_user, _ = pair
    feedback.send(trainer_user, trainee['id'], 'Sure, Thursday works.')
    assert dao.get_notifications(trainee['id'])[0]['title'] == 'New reply from your trainer'


def test_empty_and_long_messages_rejected(pair, trainer):
    _, trainee_user = pair
    with pytest.raises(BadRequestError):
        feedback.send(trainee_user, trainer['id'], '   ')
    with pytest.raises(BadRequestError):
        feedback.send(trainee_user, trainer['id'], 'x' * 2001)
    assert feedback.send(trainee_user, trainer['id'], 'x' * 2000)


def test_strangers_cannot_message(trainer, make_user, as_user):
    outsider = make_user('trainee')
    with pytest.raises(PermissionDeniedError):
        feedback.send(as_user(outsider), trainer['id'], 'Hello')
    with pytest.raises(PermissionDeniedError):
        feedback.send(as_user(trainer), outsider['id'], 'Hello')


def test_thread_is_ordered_and_respects_hidden(pair, trainer, trainee):
    trainer_user, trainee_user = pair
    first = feedback.send(trainee_user, trainer['id'], 'first')
    feedback.send(trainer_user, trainee['id'], 'second')

    feedback.hide(trainer_user, first['id'])

    assert [m['message'] for m in feedback.thread(trainee_user, trainer['id'])] == ['first', 'second']
    assert [m['message'] for m in feedback.thread(trainer_user, trainee['id'])] == ['second']


def test_only_sender_can_edit_or_delete(pair, trainer):
    trainer_user, trainee_user = pair
    msg = feedback.send(trainee_user, trainer['id'], 'original')

    with pytest.raises(PermissionDeniedError):
        feedback.edit(trainer_user, msg['id'], 'tampered')
    with pytest.raises(PermissionDeniedError):
        feedback.delete(trainer_user, msg['id'])

    edited = feedback.edit(trainee_user, msg['id'], 'revised')
    assert edited['message'] == 'revised'
    assert dao.get_feedback(msg['id'])['edited_at'] is not None

    feedback.delete(trainee_user, msg['id'])
    with pytest.raises(NotFoundError):
        feedback.delete(trainee_user, msg['id'])


def test_threads_for_trainer(pair, trainer, trainee):
    trainer_user, trainee_user = pair
    feedback.send(trainee_user, trainer['id'], 'one')
    feedback.send(trainee_user, trainer['id'], 'two')

    threads = feedback.threads_for_trainer(trainer_user)

    assert len(threads) == 1
    assert threads[0]['trainee_id'] == trainee['id']
    assert threads[0]['count'] == 2
    assert threads[0]['last_message'] == 'two'
    assert threads[0]['trainee_name'] == 'Tina Trainee'


def test_search_trainers(pair):
    _, trainee_user = pair
    assert [t['display_name'] for t in feedback.search_trainers(trainee_user, 'HOP')] == ['Grace Hopper']
    assert feedback.search_trainers(trainee_user, 'turing') == []
