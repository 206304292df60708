from atms import firestore_dao as dao
from atms.firestore_models import COURSE_STATUSES, ROLES
from atms.services import enrollment, feedback
from atms.services.grades import unsaved_grade_count
from atms.services.sessions import schedule
from atms.utils import as_utc_datetime, utcnow

# Sidebar sections in display order, with the roles allowed to see them
MENU = [
    {'id': 'dashboard', 'label': 'Dashboard', 'roles': ('admin', 'trainer', 'trainee', 'pending')},
    {'id': 'users', 'label': 'Users', 'roles': ('admin',)},
    {'id': 'pending-users', 'label': 'Pending Users', 'roles': ('admin',)},
    {'id': 'sessions', 'label': 'Sessions', 'roles': ('admin', 'trainer')},
    {'id': 'courses', 'label': 'Courses', 'roles': ('admin', 'trainer', 'trainee')},
    {'id': 'courses-pending', 'label': 'Browse Courses', 'roles': ('pending',)},
    {'id': 'schedule', 'label': 'Schedule', 'roles': ('trainee',)},
    {'id': 'materials', 'label': 'Materials', 'roles': ('trainer',)},
    {'id': 'resources', 'label': 'Resources', 'roles': ('trainee',)},
    {'id': 'grades', 'label': 'Grades', 'roles': ('admin', 'trainer', 'trainee')},
    {'id': 'feedback', 'label': 'Feedback', 'roles': ('trainer', 'trainee')},
    {'id': 'activities', 'label': 'Activities', 'roles': ('admin',)},
    {'id': 'profile', 'label': 'Profile', 'roles': ('pending',)},
]


def menu(role):
    if role == 'user':
        role = 'pending'
    return [{'id': m['id'], 'label': m['label']} for m in MENU if role in m['roles']]


def _admin_overview():
    users = dao.list_users(limit=1000)
    courses = dao.get_all_courses()
    return {
        'users_by_role': {r: sum(1 for u in users if u.get('role') == r) for r in ROLES},
        'courses_by_status': {s: sum(1 for c in courses if c.get('status') == s)
                              for s in COURSE_STATUSES},
        'pending_users': dao.count_pending_users(),
        'unsaved_grades': unsaved_grade_count(),
        'recent_activity': dao.list_activity_logs(limit=10),
    }


def _trainer_overview(user):
    now = utcnow()
    courses = dao.get_courses_by_instructor(user.uid)
    students = set()
    for c in courses:
        students.update(c.get('students', []))
    upcoming = [s for s in dao.get_training_sessions_by_trainer(user.uid)
                if (as_utc_datetime(s.get('date')) or now) >= now]
    return {
        'courses': len(courses),
        'students': len(students),
        'upcoming_sessions': upcoming[:5],
        'feedback_threads': feedback.threads_for_trainer(user)[:5],
        'materials': dao.count_materials_by_trainer(user.uid),
    }


def _trainee_overview(user):
    entries = enrollment.my_enrollments(user.uid)
    return {
        'enrollments': len(entries),
        'recent_courses': enrollment.recent_courses(user.uid),
        'upcoming_sessions': [s for s in schedule(user) if s['upcoming']][:5],
        'trainer': enrollment.active_trainer(user.uid),
    }


def _pending_overview(user):
    return {
        'available_courses': len(enrollment.browse_courses()),
        'pending_request': dao.get_pending_user(user.uid),
    }


def overview(user):
    if user.is_admin():
        return _admin_overview()
    if user.is_trainer():
        return _trainer_overview(user)
    if user.is_trainee():
        return _trainee_overview(user)
    return _pending_overview(user)
