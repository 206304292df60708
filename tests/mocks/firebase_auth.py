"""
Firebase Auth double.

Session cookies are plain strings of the form ``session-<uid>`` so tests can
log a user in by writing one into the Flask session.
"""
from types import SimpleNamespace


class FakeAuth:

    class EmailAlreadyExistsError(Exception):
        pass

    class UserNotFoundError(Exception):
        pass

    def __init__(self):
        self.users = {}
        self._next = 1

    def create_user(self, email=None, password=None, display_name=None, uid=None):
        if any(u.email == email for u in self.users.values()):
            raise self.EmailAlreadyExistsError(email)
        uid = uid or f'uid{self._next}'
        self._next += 1
        record = SimpleNamespace(uid=uid, email=email, display_name=display_name, password=password)
        self.users[uid] = record
        return record

    def get_user_by_email(self, email):
        for record in self.users.values():
            if record.email == email:
                return record
        raise self.UserNotFoundError(email)

    def update_user(self, uid, **kwargs):
        if uid not in self.users:
            raise self.UserNotFoundError(uid)
        for key, value in kwargs.items():
            setattr(self.users[uid], key, value)
        return self.users[uid]

    def delete_user(self, uid):
        if uid not in self.users:
            raise self.UserNotFoundError(uid)
        del self.users[uid]

    def create_session_cookie(self, id_token, expires_in=None):
        # ID tokens in tests are the uid itself
        return f'session-{id_token}'

    def verify_session_cookie(self, session_cookie, check_revoked=False):
        if not session_cookie or not session_cookie.startswith('session-'):
            raise ValueError('Invalid session cookie')
        return {'uid': session_cookie[len('session-'):]}
