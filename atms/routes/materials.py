from flask import Blueprint, Response, jsonify

from atms.decorators import auth_required, get_current_user, role_required
from atms.errors import form_error
from atms.forms import MaterialUploadForm
from atms.services import materials

bp = Blueprint('materials', __name__, url_prefix='/materials')


@bp.route('/')
@role_required('trainer')
def list_materials():
    return jsonify({'materials': materials.list_for_trainer(get_current_user())})


@bp.route('/', methods=['POST'])
@role_required('trainer')
def upload():
    form = MaterialUploadForm()
    if not form.validate_on_submit():
        raise form_error(form)
    material = materials.upload(get_current_user(), form.course_id.data,
                                form.file.data, form.description.data)
    return jsonify({'material': material, 'message': 'File uploaded successfully!'}), 201


@bp.route('/resources')
@role_required('trainee')
def resources():
    return jsonify({'materials': materials.resources_for_trainee(get_current_user())})


@bp.route('/<material_id>/view')
@auth_required
def view(material_id):
    material, mime_type, raw = materials.open_material(get_current_user(), material_id, 'view')
    return Response(raw, mimetype=mime_type)


@bp.route('/<material_id>/preview')
@auth_required
def preview(material_id):
    material, mime_type, raw = materials.open_material(get_current_user(), material_id, 'preview')
    return Response(
        raw,
        mimetype=mime_type,
        headers={'Content-Disposition': f"inline;filename={material.get('name', material_id)}"},
    )


@bp.route('/<material_id>/download')
@auth_required
def download(material_id):
    material, mime_type, raw = materials.open_material(get_current_user(), material_id, 'download')
    return Response(
        raw,
        mimetype=mime_type,
        headers={'Content-Disposition': f"attachment;filename={material.get('name', material_id)}"},
    )


@bp.route('/<material_id>', methods=['DELETE'])
@role_required('trainer', 'admin')
def delete(material_id):
    materials.delete(get_current_user(), material_id)
    return jsonify({'deleted': material_id})
