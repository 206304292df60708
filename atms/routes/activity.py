from flask import Blueprint, Response, jsonify, request

from atms import firestore_dao as dao
from atms.decorators import role_required
from atms.services.reports import XLSX_MIMETYPE, build_report

bp = Blueprint('activity', __name__, url_prefix='/activity')


@bp.route('/')
@role_required('admin')
def list_activity():
    limit = request.args.get('limit', 100, type=int)
    logs = dao.list_activity_logs(limit=min(max(limit, 1), 500),
                                  action=request.args.get('action') or None)
    return jsonify({'logs': logs})


@bp.route('/reports/<name>')
@role_required('admin')
def report(name):
    filename, content = build_report(name)
    return Response(
        content,
        mimetype=XLSX_MIMETYPE,
        headers={'Content-Disposition': f'attachment;filename={filename}'},
    )
