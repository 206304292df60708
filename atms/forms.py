from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed
from wtforms import (StringField, PasswordField, TextAreaField, SelectField, IntegerField,
                     FloatField, DateField, DateTimeLocalField, Field)
from wtforms.validators import DataRequired, Email, Length, NumberRange, ValidationError, Optional

from atms.firestore_models import COURSE_LEVELS, COURSE_STATUSES, ROLES, ATTENDANCE_STATUSES


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class ListField(Field):
    """Accepts a JSON array (or repeated form keys) of strings."""

    def process_formdata(self, valuelist):
        self.data = [v.strip() for v in valuelist if isinstance(v, str) and v.strip()]

    def _value(self):
        return ', '.join(self.data or [])


class RegistrationForm(FlaskForm):
    display_name = StringField('Full name', filters=[_strip], validators=[DataRequired(message='Full name is required.'), Length(min=2, max=120)])
    email = StringField('Email', filters=[_strip], validators=[DataRequired(message='Email is required.'), Email(message='Enter a valid email address.')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required.'), Length(min=6, message='Password must be at least 6 characters.')])
    requested_role = SelectField('Role', choices=[('trainee', 'Trainee'), ('trainer', 'Trainer')], default='trainee')


class LoginForm(FlaskForm):
    email = StringField('Email', filters=[_strip], validators=[DataRequired(message='Email is required.'), Email(message='Enter a valid email address.')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required.')])


class UserCreateForm(FlaskForm):
    display_name = StringField('Full name', filters=[_strip], validators=[DataRequired(message='Please fill all fields.'), Length(max=120)])
    email = StringField('Email', filters=[_strip], validators=[DataRequired(message='Please fill all fields.'), Email(message='Enter a valid email address.')])
    password = PasswordField('Password', validators=[DataRequired(message='Please fill all fields.'), Length(min=6, message='Password must be at least 6 characters.')])
    role = SelectField('Role', choices=[('trainee', 'Trainee'), ('trainer', 'Trainer'), ('admin', 'Admin')], default='trainee')


class UserEditForm(FlaskForm):
    display_name = StringField('Full name', filters=[_strip], validators=[DataRequired(message='Full name is required.'), Length(max=120)])
    email = StringField('Email', filters=[_strip], validators=[DataRequired(message='Email is required.'), Email(message='Enter a valid email address.')])
    role = SelectField('Role', choices=[(r, r.title()) for r in ROLES])


class ApprovePendingForm(FlaskForm):
    role = SelectField('Role', choices=[('', 'Requested role'), ('trainee', 'Trainee'), ('trainer', 'Trainer'), ('admin', 'Admin')], default='')


class ProfileForm(FlaskForm):
    display_name = StringField('Full name', filters=[_strip], validators=[DataRequired(message='Full name is required.'), Length(max=120)])
    email = StringField('Email', filters=[_strip], validators=[DataRequired(message='Email is required.'), Email(message='Enter a valid email address.')])


class ProfileImageForm(FlaskForm):
    image = FileField('Profile image', validators=[
        FileRequired(message='Choose an image to upload.'),
        FileAllowed(['jpg', 'jpeg', 'png', 'gif', 'webp', 'bmp'], message='Only image files are allowed.'),
    ])


class CourseForm(FlaskForm):
    title = StringField('Course title', filters=[_strip], validators=[DataRequired(message='Please fill all required fields.'), Length(max=200)])
    instructor_name = StringField('Instructor name', filters=[_strip], validators=[DataRequired(message='Instructor name is required.'), Length(max=120)])
    category = StringField('Category', filters=[_strip], validators=[Optional(), Length(max=100)])
    level = SelectField('Level', choices=[(lv, lv.title()) for lv in COURSE_LEVELS], default='beginner')
    hours = FloatField('Hours', validators=[Optional(), NumberRange(min=0)])
    duration = IntegerField('Duration (days)', validators=[Optional(), NumberRange(min=0)])
    start_date = DateField('Start date', validators=[DataRequired(message='Start date is required.')])
    end_date = DateField('End date', validators=[DataRequired(message='End date is required.')])
    materials = ListField('Materials', default=list)
    status = SelectField('Status', choices=[('', 'Automatic')] + [(s, s.title()) for s in COURSE_STATUSES], default='')


class PeriodForm(FlaskForm):
    title = StringField('Title', filters=[_strip], validators=[DataRequired(message='Title is required.'), Length(max=200)])
    reg_start = DateField('Registration start', validators=[DataRequired(message='Registration start is required.')])
    reg_end = DateField('Registration end', validators=[DataRequired(message='Registration end is required.')])
    train_start = DateField('Training start', validators=[DataRequired(message='Training start is required.')])
    train_end = DateField('Training end', validators=[DataRequired(message='Training end is required.')])

    def validate_reg_end(self, reg_end):
        if self.reg_start.data and reg_end.data and reg_end.data < self.reg_start.data:
            raise ValidationError('Registration end cannot be before registration start.')

    def validate_train_end(self, train_end):
        if self.train_start.data and train_end.data and train_end.data < self.train_start.data:
            raise ValidationError('Training end cannot be before training start.')


class TrainingSessionForm(FlaskForm):
    course_id = StringField('Course', validators=[DataRequired(message='Select a course.')])
    topic = StringField('Topic', filters=[_strip], validators=[DataRequired(message='Topic is required.'), Length(max=200)])
    description = TextAreaField('Description', filters=[_strip], validators=[Optional()])
    location = StringField('Location', filters=[_strip], validators=[Optional(), Length(max=200)])
    date = DateField('Date', validators=[DataRequired(message='Date is required.')])
    hours = FloatField('Hours', validators=[Optional(), NumberRange(min=0)])
    train_start = DateTimeLocalField('Start', validators=[Optional()])
    train_end = DateTimeLocalField('End', validators=[Optional()])

    def validate_train_end(self, train_end):
        if self.train_start.data and train_end.data and train_end.data < self.train_start.data:
            raise ValidationError('Session end cannot be before its start.')


class AttendanceForm(FlaskForm):
    student_id = StringField('Student', validators=[DataRequired(message='Select a trainee.')])
    status = SelectField('Status', choices=[(s, s.title()) for s in ATTENDANCE_STATUSES])


class EnrollForm(FlaskForm):
    course_id = StringField('Course', validators=[DataRequired(message='Select a course.')])


class FeedbackForm(FlaskForm):
    recipient_id = StringField('Recipient', validators=[Optional()])
    message = TextAreaField('Message', filters=[_strip], validators=[DataRequired(message='Message cannot be empty.'), Length(max=2000, message='Messages are limited to 2000 characters.')])


class FeedbackEditForm(FlaskForm):
    message = TextAreaField('Message', filters=[_strip], validators=[DataRequired(message='Message cannot be empty.'), Length(max=2000, message='Messages are limited to 2000 characters.')])


class MaterialUploadForm(FlaskForm):
    file = FileField('File', validators=[FileRequired(message='Choose a file to upload.')])
    course_id = StringField('Course', validators=[DataRequired(message='Please select a course first.')])
    description = TextAreaField('Description', filters=[_strip], validators=[Optional(), Length(max=1000)])


class GradeForm(FlaskForm):
    trainee_id = StringField('Trainee', validators=[DataRequired(message='Select a trainee.')])
    course_id = StringField('Course', validators=[DataRequired(message='Select a course.')])
    score = FloatField('Score', validators=[NumberRange(min=0, max=100, message='Score must be between 0 and 100.')])
    remarks = TextAreaField('Remarks', filters=[_strip], validators=[Optional(), Length(max=1000)])


class FinalizeGradeForm(FlaskForm):
    trainee_id = StringField('Trainee', validators=[DataRequired(message='Select a trainee.')])
    course_id = StringField('Course', validators=[DataRequired(message='Select a course.')])
