import click

from atms import firestore_dao as dao
from atms.firebase_init import get_auth
from atms.firestore_models import User
from atms.services.course_status import reconcile_all


def register_commands(app):

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True)
    @click.option('--name', 'display_name', prompt='Full name')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(email, display_name, password):
        """Create a super admin account."""
        auth = get_auth()
        try:
            fb_user = auth.create_user(email=email, password=password, display_name=display_name)
        except auth.EmailAlreadyExistsError:
            fb_user = auth.get_user_by_email(email)
            click.echo(f'{email} already has an auth account, promoting it.')
        user = User(uid=fb_user.uid, email=email, display_name=display_name,
                    role='admin', is_super_admin=True)
        dao.create_user(fb_user.uid, user.to_dict())
        click.echo(f'Super admin {email} ready (uid {fb_user.uid}).')

    @app.cli.command('reconcile-statuses')
    def reconcile_statuses():
        """Match draft courses to trainers and refresh course/enrollment statuses."""
        summary = reconcile_all()
        click.echo(
            f"Matched {summary['matched_drafts']} draft course(s), "
            f"changed {summary['status_changes']} status(es), "
            f"completed {summary['expired_enrollments']} enrollment(s)."
        )
