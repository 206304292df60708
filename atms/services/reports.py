"""Admin reports exported as .xlsx workbooks."""

import io
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

from atms import firestore_dao as dao
from atms.errors import NotFoundError
from atms.services.grades import all_grades

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _cell(value):
    # Excel cannot store timezone-aware datetimes
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    if isinstance(value, (list, dict)):
        return str(value)
    return value


def _workbook(title, headers, rows):
    wb = Workbook()
    ws = wb.active
    ws.title = title

    header_font = Font(bold=True)
    header_fill = PatternFill(start_color='E0E0E0', end_color='E0E0E0', fill_type='solid')
    ws.append(headers)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
    for row in rows:
        ws.append([_cell(v) for v in row])
    for column in ws.columns:
        ws.column_dimensions[column[0].column_letter].width = 22

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def user_activity_report():
    logs = dao.list_activity_logs(limit=1000)
    rows = [(log.get('timestamp'), log.get('user_name'), log.get('user_role'),
             log.get('action'), log.get('target'), log.get('details'))
            for log in logs]
    return _workbook('User Activity', ['Time', 'User', 'Role', 'Action', 'Target', 'Details'], rows)


def course_completion_report():
    rows = [(g.get('trainee_name'), g.get('course_title'), g.get('score'),
             g.get('remarks'), 'Yes' if g.get('finalized') else 'No')
            for g in all_grades()]
    return _workbook('Course Completion', ['Trainee', 'Course', 'Score', 'Remarks', 'Finalized'], rows)


def attendance_report():
    rows = []
    for course in dao.get_all_courses():
        for s in dao.get_training_sessions_by_course(course['id']):
            for a in s.get('attendees', []):
                rows.append((course.get('title'), s.get('topic'), s.get('date'),
                             a.get('student_name') or a.get('student_id'), a.get('status') or '-'))
    return _workbook('Attendance', ['Course', 'Session', 'Date', 'Trainee', 'Status'], rows)


REPORTS = {
    'user-activity': user_activity_report,
    'course-completion': course_completion_report,
    'attendance': attendance_report,
}


def build_report(name):
    """Return (filename, xlsx bytes) for a named report."""
    builder = REPORTS.get(name)
    if builder is None:
        raise NotFoundError(f'Unknown report: {name}')
    stamp = datetime.now().strftime('%Y%m%d')
    return f'{name}_{stamp}.xlsx', builder()
