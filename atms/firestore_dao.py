"""
Firestore Data Access Object (DAO) layer.

Route handlers and services call functions from this module instead of
talking to the Firestore client directly. Every getter returns plain
dicts carrying the document ID under 'id'.
"""

from datetime import datetime, timezone

from google.cloud.firestore_v1 import ArrayRemove, ArrayUnion, FieldFilter

from atms.firebase_init import get_db

# Firestore 'in' / 'array_contains_any' accept at most 30 values
IN_QUERY_LIMIT = 30
# Firestore write batches are limited to 500 operations
BATCH_LIMIT = 500


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _doc_to_dict(doc_snapshot):
    """Convert a Firestore DocumentSnapshot to a dict with 'id' field."""
    if not doc_snapshot.exists:
        return None
    d = doc_snapshot.to_dict()
    d['id'] = doc_snapshot.id
    return d


def _query_to_list(query_ref):
    """Run a query and return a list of dicts."""
    return [_doc_to_dict(doc) for doc in query_ref.stream()]


def _chunks(values, size=IN_QUERY_LIMIT):
    for i in range(0, len(values), size):
        yield values[i:i + size]


def _now():
    return datetime.now(timezone.utc)


class _BatchWriter:
    """Write batch that commits itself every BATCH_LIMIT operations."""

    def __init__(self):
        self._batch = get_db().batch()
        self._count = 0

    def _tick(self):
        self._count += 1
        if self._count % BATCH_LIMIT == 0:
            self._batch.commit()
            self._batch = get_db().batch()

    def set(self, ref, data, merge=False):
        self._batch.set(ref, data, merge=merge)
        self._tick()

    def update(self, ref, data):
        self._batch.update(ref, data)
        self._tick()

    def delete(self, ref):
        self._batch.delete(ref)
        self._tick()

    def commit(self):
        if self._count % BATCH_LIMIT != 0:
            self._batch.commit()
        return self._count


# ========================================================================
# Users  (collection: users)
# ========================================================================

def get_user(uid):
    """Get a user document by UID. Returns dict or None."""
    doc = get_db().collection('users').document(uid).get()
    return _doc_to_dict(doc)


def get_user_by_email(email):
    """Get a user by email address. Returns dict or None."""
    docs = (
        get_db().collection('users')
        .where(filter=FieldFilter('email', '==', email))
        .limit(1)
        .stream()
    )
    for doc in docs:
        return _doc_to_dict(doc)
    return None


def create_user(uid, data):
    """Create a user document with the given UID as the document ID."""
    data.setdefault('uid', uid)
    data.setdefault('created_at', _now())
    get_db().collection('users').document(uid).set(data)


def update_user(uid, data):
    """Update fields on an existing user document."""
    data.setdefault('updated_at', _now())
    get_db().collection('users').document(uid).update(data)


def delete_user(uid):
    get_db().collection('users').document(uid).delete()


def list_users(limit=50):
    """Newest users first."""
    return _query_to_list(
        get_db().collection('users')
        .order_by('created_at', direction='DESCENDING')
        .limit(limit)
    )


def get_users_by_role(role):
    return _query_to_list(
        get_db().collection('users')
        .where(filter=FieldFilter('role', '==', role))
    )


def get_users_by_ids(uids):
    """Fetch multiple users by their UIDs, skipping missing ones."""
    results = []
    for uid in uids:
        d = get_user(uid)
        if d:
            results.append(d)
    return results


# ========================================================================
# Pending users  (collection: pending_users)
# ========================================================================

def get_pending_user(uid):
    doc = get_db().collection('pending_users').document(uid).get()
    return _doc_to_dict(doc)


def create_pending_user(uid, data):
    data.setdefault('uid', uid)
    data.setdefault('created_at', _now())
    get_db().collection('pending_users').document(uid).set(data)


def delete_pending_user(uid):
    get_db().collection('pending_users').document(uid).delete()


def list_pending_users():
    return _query_to_list(
        get_db().collection('pending_users')
        .order_by('created_at', direction='DESCENDING')
    )


def count_pending_users():
    return sum(1 for _ in get_db().collection('pending_users').stream())


# ========================================================================
# Courses  (collection: courses)
# ========================================================================

def get_course(course_id):
    """Get a course by ID. Returns dict or None."""
    doc = get_db().collection('courses').document(course_id).get()
    return _doc_to_dict(doc)


def create_course(data):
    """Create a new course. Returns the generated doc ID."""
    now = _now()
    data.setdefault('created_at', now)
    data.setdefault('updated_at', now)
    data.setdefault('students', [])
    data.setdefault('materials', [])
    _, doc_ref = get_db().collection('courses').add(data)
    return doc_ref.id


def update_course(course_id, data):
    """Update fields on an existing course."""
    data.setdefault('updated_at', _now())
    get_db().collection('courses').document(course_id).update(data)


def delete_course(course_id):
    get_db().collection('courses').document(course_id).delete()


def list_courses(limit=50):
    """Newest courses first."""
    return _query_to_list(
        get_db().collection('courses')
        .order_by('created_at', direction='DESCENDING')
        .limit(limit)
    )


def get_all_courses():
    return _query_to_list(get_db().collection('courses'))


def get_courses_by_status(status):
    return _query_to_list(
        get_db().collection('courses')
        .where(filter=FieldFilter('status', '==', status))
    )


def get_courses_by_instructor(instructor_id):
    """Get courses taught by a trainer."""
    return _query_to_list(
        get_db().collection('courses')
        .where(filter=FieldFilter('instructor_id', '==', instructor_id))
    )


def add_course_student(course_id, user_id):
    get_db().collection('courses').document(course_id).update({
        'students': ArrayUnion([user_id]),
        'updated_at': _now(),
    })


def remove_course_student(course_id, user_id):
    get_db().collection('courses').document(course_id).update({
        'students': ArrayRemove([user_id]),
        'updated_at': _now(),
    })


# ========================================================================
# Enrollments  (collection: enrollments, one document per user)
# ========================================================================

def get_enrollment(user_id):
    """Get the enrollment document of a user. Returns dict or None."""
    doc = get_db().collection('enrollments').document(user_id).get()
    return _doc_to_dict(doc)


def save_enrollment(user_id, courses):
    """Overwrite the course entries of a user's enrollment document."""
    get_db().collection('enrollments').document(user_id).set({
        'user_id': user_id,
        'course_ids': [c['course_id'] for c in courses],
        'courses': courses,
        'updated_at': _now(),
    })


def get_all_enrollments():
    return _query_to_list(get_db().collection('enrollments'))


def get_enrollments_by_course(course_id):
    """Get every enrollment document that contains the course."""
    return _query_to_list(
        get_db().collection('enrollments')
        .where(filter=FieldFilter('course_ids', 'array_contains', course_id))
    )


def save_enrollments(enrollments):
    """Batch-overwrite several enrollment documents. Returns write count."""
    writer = _BatchWriter()
    col = get_db().collection('enrollments')
    for e in enrollments:
        writer.set(col.document(e['user_id']), {
            'user_id': e['user_id'],
            'course_ids': [c['course_id'] for c in e['courses']],
            'courses': e['courses'],
            'updated_at': _now(),
        })
    return writer.commit()


def is_enrolled(user_id, course_id):
    enrollment = get_enrollment(user_id)
    if not enrollment:
        return False
    return course_id in enrollment.get('course_ids', [])


# ========================================================================
# Training periods  (collection: sessions)
# ========================================================================

def get_period(period_id):
    doc = get_db().collection('sessions').document(period_id).get()
    return _doc_to_dict(doc)


def create_period(data):
    data.setdefault('created_at', _now())
    _, doc_ref = get_db().collection('sessions').add(data)
    return doc_ref.id


def update_period(period_id, data):
    data.setdefault('updated_at', _now())
    get_db().collection('sessions').document(period_id).update(data)


def delete_period(period_id):
    get_db().collection('sessions').document(period_id).delete()


def list_periods():
    return _query_to_list(
        get_db().collection('sessions')
        .order_by('created_at', direction='DESCENDING')
    )


def get_latest_period():
    docs = (
        get_db().collection('sessions')
        .order_by('created_at', direction='DESCENDING')
        .limit(1)
        .stream()
    )
    for doc in docs:
        return _doc_to_dict(doc)
    return None


# ========================================================================
# Training sessions  (collection: training_sessions)
# ========================================================================

def get_training_session(session_id):
    doc = get_db().collection('training_sessions').document(session_id).get()
    return _doc_to_dict(doc)


def create_training_session(data):
    data.setdefault('created_at', _now())
    _, doc_ref = get_db().collection('training_sessions').add(data)
    return doc_ref.id


def update_training_session(session_id, data):
    data.setdefault('updated_at', _now())
    get_db().collection('training_sessions').document(session_id).update(data)


def delete_training_session(session_id):
    get_db().collection('training_sessions').document(session_id).delete()


def get_training_sessions_by_trainer(trainer_id):
    return _query_to_list(
        get_db().collection('training_sessions')
        .where(filter=FieldFilter('trainer_id', '==', trainer_id))
        .order_by('date')
    )


def get_training_sessions_by_course(course_id):
    return _query_to_list(
        get_db().collection('training_sessions')
        .where(filter=FieldFilter('course_id', '==', course_id))
        .order_by('date')
    )


def get_training_sessions_by_courses(course_ids):
    """Sessions for several courses, chunked to the 'in' query limit."""
    results = []
    for batch in _chunks(list(course_ids)):
        results.extend(_query_to_list(
            get_db().collection('training_sessions')
            .where(filter=FieldFilter('course_id', 'in', batch))
        ))
    return results


# ========================================================================
# Feedback  (collection: feedbacks)
# ========================================================================

def get_feedback(message_id):
    doc = get_db().collection('feedbacks').document(message_id).get()
    return _doc_to_dict(doc)


def create_feedback(data):
    data.setdefault('created_at', _now())
    data.setdefault('hidden_for', [])
    data.setdefault('status', 'sent')
    _, doc_ref = get_db().collection('feedbacks').add(data)
    return doc_ref.id


def update_feedback(message_id, data):
    get_db().collection('feedbacks').document(message_id).update(data)


def hide_feedback(message_id, user_id):
    get_db().collection('feedbacks').document(message_id).update({
        'hidden_for': ArrayUnion([user_id]),
    })


def delete_feedback(message_id):
    get_db().collection('feedbacks').document(message_id).delete()


def get_feedback_thread(trainer_id, trainee_id):
    """Messages between one trainer and one trainee, oldest first."""
    return _query_to_list(
        get_db().collection('feedbacks')
        .where(filter=FieldFilter('trainer_id', '==', trainer_id))
        .where(filter=FieldFilter('trainee_id', '==', trainee_id))
        .order_by('created_at')
    )


def get_feedback_by_trainer(trainer_id):
    return _query_to_list(
        get_db().collection('feedbacks')
        .where(filter=FieldFilter('trainer_id', '==', trainer_id))
        .order_by('created_at')
    )


# ========================================================================
# Training materials  (collection: training_materials)
# ========================================================================

def get_material(material_id):
    doc = get_db().collection('training_materials').document(material_id).get()
    return _doc_to_dict(doc)


def create_material(data):
    data.setdefault('uploaded_at', _now())
    _, doc_ref = get_db().collection('training_materials').add(data)
    return doc_ref.id


def delete_material(material_id):
    get_db().collection('training_materials').document(material_id).delete()


def get_materials_by_trainer(trainer_id):
    return _query_to_list(
        get_db().collection('training_materials')
        .where(filter=FieldFilter('trainer_id', '==', trainer_id))
        .order_by('uploaded_at', direction='DESCENDING')
    )


def get_materials_by_courses(course_ids):
    """Materials of several courses, chunked to the 'in' query limit."""
    results = []
    for batch in _chunks(list(course_ids)):
        results.extend(_query_to_list(
            get_db().collection('training_materials')
            .where(filter=FieldFilter('course_id', 'in', batch))
        ))
    return results


def count_materials_by_trainer(trainer_id):
    docs = (
        get_db().collection('training_materials')
        .where(filter=FieldFilter('trainer_id', '==', trainer_id))
        .stream()
    )
    return sum(1 for _ in docs)


# ========================================================================
# Grades  (collections: grades, final_grades)
# ========================================================================

def _grade_id(trainee_id, course_id):
    return f"{trainee_id}_{course_id}"


def get_grade(trainee_id, course_id):
    doc = get_db().collection('grades').document(_grade_id(trainee_id, course_id)).get()
    return _doc_to_dict(doc)


def save_grade(data):
    """Create or update a grade keyed by trainee and course. Returns doc ID."""
    doc_id = _grade_id(data['trainee_id'], data['course_id'])
    ref = get_db().collection('grades').document(doc_id)
    if ref.get().exists:
        data.pop('created_at', None)
    else:
        data.setdefault('created_at', _now())
    data['updated_at'] = _now()
    ref.set(data, merge=True)
    return doc_id


def get_all_grades():
    return _query_to_list(get_db().collection('grades'))


def get_grades_by_trainer(trainer_id):
    return _query_to_list(
        get_db().collection('grades')
        .where(filter=FieldFilter('trainer_id', '==', trainer_id))
    )


def get_grades_by_trainee(trainee_id):
    return _query_to_list(
        get_db().collection('grades')
        .where(filter=FieldFilter('trainee_id', '==', trainee_id))
    )


def get_final_grade(trainee_id):
    doc = get_db().collection('final_grades').document(trainee_id).get()
    return _doc_to_dict(doc)


def save_final_grade(trainee_id, courses):
    get_db().collection('final_grades').document(trainee_id).set({
        'trainee_id': trainee_id,
        'courses': courses,
        'updated_at': _now(),
    })


def get_all_final_grades():
    return _query_to_list(get_db().collection('final_grades'))


# ========================================================================
# Activity logs  (collection: activity_logs)
# ========================================================================

def create_activity_log(data):
    data.setdefault('timestamp', _now())
    _, doc_ref = get_db().collection('activity_logs').add(data)
    return doc_ref.id


def list_activity_logs(limit=100, action=None):
    q = get_db().collection('activity_logs')
    if action:
        q = q.where(filter=FieldFilter('action', '==', action))
    return _query_to_list(
        q.order_by('timestamp', direction='DESCENDING').limit(limit)
    )


# ========================================================================
# Notifications  (collection: notifications)
# ========================================================================

def create_notification(data):
    """Create a notification. Returns doc ID."""
    data.setdefault('created_at', _now())
    data.setdefault('is_read', False)
    _, doc_ref = get_db().collection('notifications').add(data)
    return doc_ref.id


def get_notification(notification_id):
    doc = get_db().collection('notifications').document(notification_id).get()
    return _doc_to_dict(doc)


def get_notifications(user_id, limit=50):
    """Get notifications for a user, newest first."""
    return _query_to_list(
        get_db().collection('notifications')
        .where(filter=FieldFilter('user_id', '==', user_id))
        .order_by('created_at', direction='DESCENDING')
        .limit(limit)
    )


def count_unread_notifications(user_id):
    docs = (
        get_db().collection('notifications')
        .where(filter=FieldFilter('user_id', '==', user_id))
        .where(filter=FieldFilter('is_read', '==', False))
        .stream()
    )
    return sum(1 for _ in docs)


def mark_notification_read(notification_id):
    """Mark a single notification as read."""
    get_db().collection('notifications').document(notification_id).update({
        'is_read': True,
        'read_at': _now(),
    })


def mark_all_read(user_id):
    """Mark all notifications for a user as read. Returns count."""
    docs = (
        get_db().collection('notifications')
        .where(filter=FieldFilter('user_id', '==', user_id))
        .where(filter=FieldFilter('is_read', '==', False))
        .stream()
    )
    writer = _BatchWriter()
    now = _now()
    for doc in docs:
        writer.update(doc.reference, {'is_read': True, 'read_at': now})
    return writer.commit()
