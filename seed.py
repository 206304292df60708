from datetime import datetime, timezone, timedelta

from atms import create_app
from atms.firebase_init import get_auth
from atms import firestore_dao as dao
from atms.firestore_models import (Attendee, EnrollmentCourse, FeedbackMessage, Grade, Material,
                                   TrainingSession, User)
from atms.services.course_status import apply_trainer_and_status


def seed_database():
    app = create_app()
    with app.app_context():
        auth = get_auth()
        password = 'password123'
        now = datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        print("Creating users...")

        def create_firebase_user(email, display_name, role, is_super_admin=False):
            try:
                fb_user = auth.create_user(email=email, password=password, display_name=display_name)
            except auth.EmailAlreadyExistsError:
                fb_user = auth.get_user_by_email(email)
            uid = fb_user.uid
            dao.create_user(uid, User(uid=uid, email=email, display_name=display_name, role=role,
                                      is_super_admin=is_super_admin).to_dict())
            return uid

        admin_uid = create_firebase_user('admin@example.com', 'Super Admin', 'admin', is_super_admin=True)
        create_firebase_user('manager@example.com', 'Operations Admin', 'admin')
        trainer1_uid = create_firebase_user('trainer1@example.com', 'Grace Hopper', 'trainer')
        trainer2_uid = create_firebase_user('trainer2@example.com', 'Alan Turing', 'trainer')

        trainee_uids = []
        for i in range(1, 7):
            trainee_uids.append(create_firebase_user(f'trainee{i}@example.com', f'Trainee {i}', 'trainee'))

        pending_uid = create_firebase_user('pending@example.com', 'Pat Pending', 'pending')
        dao.create_pending_user(pending_uid, {
            'display_name': 'Pat Pending',
            'email': 'pending@example.com',
            'requested_role': 'trainer',
        })

        print("Creating training period...")
        dao.create_period({
            'title': 'Autumn Intake',
            'reg_start': today - timedelta(days=30),
            'reg_end': today + timedelta(days=7),
            'train_start': today - timedelta(days=30),
            'train_end': today + timedelta(days=120),
        })

        print("Creating courses...")
        course_specs = [
            ('Python Fundamentals', 'Grace Hopper', 'Programming', 'beginner', 24, -20, 40),
            ('Data Engineering', 'grace hopper ', 'Data', 'intermediate', 32, 5, 60),
            ('Applied Cryptography', 'Alan Turing', 'Security', 'advanced', 40, -25, -2),
            ('Cloud Operations', 'Ada Lovelace', 'Infrastructure', 'intermediate', 16, 10, 50),
        ]
        course_ids = []
        for title, instructor, category, level, hours, start, end in course_specs:
            data = apply_trainer_and_status({
                'title': title,
                'instructor_name': instructor,
                'category': category,
                'level': level,
                'hours': hours,
                'duration': end - start,
                'start_date': today + timedelta(days=start),
                'end_date': today + timedelta(days=end),
                'materials': ['Slides', 'Lab workbook'],
            })
            course_ids.append(dao.create_course(data))
            print(f"  {title}: {data['status']}")

        print("Creating enrollments...")
        for i, uid in enumerate(trainee_uids):
            picked = course_ids[:2] if i % 2 == 0 else course_ids[1:3]
            entries = []
            for course_id in picked:
                course = dao.get_course(course_id)
                entries.append(EnrollmentCourse.from_course(course).to_dict())
                dao.add_course_student(course_id, uid)
            dao.save_enrollment(uid, entries)

        print("Creating training sessions...")
        python_course = dao.get_course(course_ids[0])
        students = dao.get_users_by_ids(python_course['students'])
        for week, topic in enumerate(['Syntax and types', 'Functions', 'Packaging']):
            session_date = today + timedelta(days=7 * week - 7)
            attendees = [
                Attendee(student_id=s['id'], student_name=s['display_name'],
                         status='present' if week == 0 else None)
                for s in students
            ]
            dao.create_training_session(TrainingSession(
                course_id=python_course['id'],
                course_name=python_course['title'],
                trainer_id=trainer1_uid,
                topic=topic,
                location='Room 101',
                date=session_date,
                hours=3,
                train_start=session_date + timedelta(hours=9),
                train_end=session_date + timedelta(hours=12),
                attendees=attendees,
            ).to_dict())

        print("Creating materials...")
        syllabus = b'Week 1: Syntax and types\nWeek 2: Functions\nWeek 3: Packaging\n'
        dao.create_material(Material(
            name='syllabus.txt',
            size=len(syllabus),
            type='text/plain',
            description='Course outline',
            content=Material.to_data_url(syllabus, 'text/plain'),
            course_id=python_course['id'],
            course_name=python_course['title'],
            trainer_id=trainer1_uid,
            trainer_name='Grace Hopper',
        ).to_dict())

        print("Creating feedback and grades...")
        dao.create_feedback(FeedbackMessage(
            trainer_id=trainer1_uid, trainee_id=trainee_uids[0], sender='trainee',
            message='Could you share extra exercises for functions?',
        ).to_dict())
        dao.create_feedback(FeedbackMessage(
            trainer_id=trainer1_uid, trainee_id=trainee_uids[0], sender='trainer',
            message='Uploaded a new workbook to the resources tab.',
        ).to_dict())
        for score, uid in zip([88, 92, 75], trainee_uids[::2]):
            dao.save_grade(Grade(trainee_id=uid, course_id=python_course['id'],
                                 trainer_id=trainer1_uid, score=score,
                                 remarks='Mid-course assessment').to_dict())
        dao.save_final_grade(trainee_uids[0], [{
            'course_id': python_course['id'],
            'score': 88,
            'finalized_at': now,
            'finalized_by': admin_uid,
        }])

        print("\n" + "=" * 60)
        print("Test accounts (password: password123)")
        print("  Super admin: admin@example.com")
        print("  Admin:       manager@example.com")
        print("  Trainers:    trainer1@example.com, trainer2@example.com")
        print("  Trainees:    trainee1~6@example.com")
        print("  Pending:     pending@example.com")
        print("=" * 60)
        print("Database seed complete!")


if __name__ == '__main__':
    seed_database()
