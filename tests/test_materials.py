"""
Tests for material uploads and trainee resources
"""
import io

import pytest
from werkzeug.datastructures import FileStorage

from atms import firestore_dao as dao
from atms.errors import BadRequestError, PayloadTooLargeError, PermissionDeniedError
from atms.firestore_models import Material
from atms.services import enrollment, materials


def _file(content=b'hello world', name='notes.txt', mimetype='text/plain'):
    return FileStorage(stream=io.BytesIO(content), filename=name, content_type=mimetype)


@pytest.fixture
def course(trainer, make_course):
    return make_course()


class TestKind:

    @pytest.mark.parametrize('mime,kind', [
        ('application/pdf', 'document'),
        ('application/vnd.openxmlformats-officedocument.wordprocessingml.document', 'document'),
        ('text/plain', 'document'),
        ('image/png', 'image'),
        ('video/mp4', 'video'),
        ('application/zip', 'other'),
    ])
    def test_kind_for(self, mime, kind):
        assert Material.kind_for(mime) == kind

    def test_decode_rejects_garbage(self):
        with pytest.raises(ValueError):
            Material.decode_data_url('not a data url')


class TestUpload:

    def test_upload_stores_data_url(self, trainer, course, as_user):
        result = materials.upload(as_user(trainer), course['id'], _file(), 'Week 1')

        assert 'content' not in result
        assert result['kind'] == 'document'
        assert result['size'] == 11
        stored = dao.get_material(result['id'])
        assert Material.decode_data_url(stored['content']) == ('text/plain', b'hello world')
        assert stored['course_name'] == course['title']

    def test_empty_file(self, trainer, course, as_user):
        with pytest.raises(BadRequestError):
            materials.upload(as_user(trainer), course['id'], _file(b''))

    def test_oversized_file(self, app, trainer, course, as_user):
        app.config['MAX_MATERIAL_BYTES'] = 10
        with pytest.raises(PayloadTooLargeError):
            materials.upload(as_user(trainer), course['id'], _file(b'x' * 11))

    def test_other_trainers_course(self, course, make_user, as_user):
        other = make_user('trainer', 'Alan Turing')
        with pytest.raises(PermissionDeniedError):
            materials.upload(as_user(other), course['id'], _file())


class TestAccess:

    def test_trainee_resources_and_download(self, trainer, trainee, course, as_user, db):
        uploaded = materials.upload(as_user(trainer), course['id'], _file())
        enrollment.enroll(as_user(trainee), course['id'])

        resources = materials.resources_for_trainee(as_user(trainee))
        assert [m['id'] for m in resources] == [uploaded['id']]

        _, mime, raw = materials.open_material(as_user(trainee), uploaded['id'], 'download')
        assert (mime, raw) == ('text/plain', b'hello world')
        actions = [log['action'] for log in dao.list_activity_logs()]
        assert 'Downloaded Resource' in actions

    def test_unenrolled_trainee_is_denied(self, trainer, trainee, course, as_user):
        uploaded = materials.upload(as_user(trainer), course['id'], _file())
        with pytest.raises(PermissionDeniedError):
            materials.open_material(as_user(trainee), uploaded['id'], 'preview')

    def test_no_enrollments_means_no_resources(self, trainee, as_user):
        assert materials.resources_for_trainee(as_user(trainee)) == []

    def test_delete_by_owner_or_admin_only(self, trainer, admin, course, make_user, as_user):
        first = materials.upload(as_user(trainer), course['id'], _file())
        second = materials.upload(as_user(trainer), course['id'], _file(name='b.txt'))
        other = make_user('trainer', 'Alan Turing')

        with pytest.raises(PermissionDeniedError):
            materials.delete(as_user(other), first['id'])
        materials.delete(as_user(trainer), first['id'])
        materials.delete(as_user(admin), second['id'])
        assert materials.list_for_trainer(as_user(trainer)) == []

    @pytest.mark.parametrize('mode,action', [
        ('view', 'Viewed Resource'),
        ('preview', 'Previewed Resource Inline'),
        ('download', 'Downloaded Resource'),
    ])
    def test_each_access_mode_is_logged(self, trainer, trainee, course, as_user, mode, action):
        uploaded = materials.upload(as_user(trainer), course['id'], _file())
        enrollment.enroll(as_user(trainee), course['id'])

        materials.open_material(as_user(trainee), uploaded['id'], mode)

        logs = dao.list_activity_logs(action=action)
        assert [log['user_id'] for log in logs] == [trainee['id']]
