import logging
from datetime import datetime, timezone

from flask import current_app
from werkzeug.utils import secure_filename

from atms import firestore_dao as dao
from atms.errors import BadRequestError, NotFoundError, PayloadTooLargeError, PermissionDeniedError
from atms.firestore_models import Material
from atms.services.activity import log_activity
from atms.services.enrollment import enrolled_course_ids
from atms.utils import as_utc_datetime

logger = logging.getLogger(__name__)

EPOCH = datetime.min.replace(tzinfo=timezone.utc)

VIEW_ACTIONS = {
    'view': 'Viewed Resource',
    'download': 'Downloaded Resource',
    'preview': 'Previewed Resource Inline',
}


def _without_content(material):
    return {k: v for k, v in material.items() if k != 'content'}


def upload(user, course_id, file_storage, description=''):
    """Store an uploaded file as a base64 data URL on a material document."""
    course = dao.get_course(course_id)
    if not course:
        raise NotFoundError('Course not found')
    if course.get('instructor_id') != user.uid:
        raise PermissionDeniedError('You can only upload materials to your own courses.')

    raw = file_storage.read()
    if not raw:
        raise BadRequestError('The selected file is empty.')
    limit = current_app.config['MAX_MATERIAL_BYTES']
    if len(raw) > limit:
        raise PayloadTooLargeError(
            f'File is too large ({len(raw) // 1024} KB). Maximum size is {limit // 1024} KB.')

    mime_type = file_storage.mimetype or 'application/octet-stream'
    material = Material(
        name=secure_filename(file_storage.filename or '') or 'upload',
        size=len(raw),
        type=mime_type,
        description=description or '',
        content=Material.to_data_url(raw, mime_type),
        course_id=course_id,
        course_name=course.get('title', ''),
        trainer_id=user.uid,
        trainer_name=user.display_name,
    )
    data = material.to_dict()
    material_id = dao.create_material(data)
    data['id'] = material_id
    log_activity(user, 'uploaded material', f'{material.name} to {material.course_name}',
                 course_id=course_id, resource_id=material_id)
    logger.info('Material %s (%d bytes) uploaded by %s', material_id, material.size, user.uid)
    return _without_content(data)


def list_for_trainer(user):
    return [_without_content(m) for m in dao.get_materials_by_trainer(user.uid)]


def resources_for_trainee(user):
    """Materials of every course the user is enrolled in, newest first."""
    course_ids = enrolled_course_ids(user.uid)
    if not course_ids:
        return []
    materials = [_without_content(m) for m in dao.get_materials_by_courses(course_ids)]
    materials.sort(key=lambda m: as_utc_datetime(m.get('uploaded_at')) or EPOCH, reverse=True)
    return materials


def _readable(user, material_id):
    material = dao.get_material(material_id)
    if not material:
        raise NotFoundError('Material not found')
    if user.is_admin() or material.get('trainer_id') == user.uid:
        return material
    if material.get('course_id') in enrolled_course_ids(user.uid):
        return material
    raise PermissionDeniedError('You are not enrolled in this course.')


def open_material(user, material_id, mode='download'):
    """Decode a material for viewing. Returns (material, mime_type, raw bytes)."""
    material = _readable(user, material_id)
    try:
        mime_type, raw = Material.decode_data_url(material.get('content', ''))
    except ValueError:
        logger.error('Material %s holds an invalid data URL', material_id)
        raise BadRequestError('This file cannot be opened.')
    log_activity(user, VIEW_ACTIONS[mode], material.get('name', material_id),
                 f"Course: {material.get('course_name', '')}",
                 course_id=material.get('course_id'), resource_id=material_id)
    return material, mime_type, raw


def delete(user, material_id):
    material = dao.get_material(material_id)
    if not material:
        raise NotFoundError('Material not found')
    if not (user.is_admin() or material.get('trainer_id') == user.uid):
        raise PermissionDeniedError('You can only delete your own materials.')
    dao.delete_material(material_id)
    log_activity(user, 'deleted material', material.get('name', material_id),
                 course_id=material.get('course_id'), resource_id=material_id)
    return material_id
