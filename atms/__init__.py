import logging

from flask import Flask
from flask_socketio import SocketIO
from flask_wtf.csrf import CSRFProtect
from config import Config

from atms.utils import ATMSJSONProvider

socketio = SocketIO()
csrf = CSRFProtect()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json = ATMSJSONProvider(app)

    logging.basicConfig(
        level=getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    csrf.init_app(app)

    # Initialize Firebase
    from atms.firebase_init import init_firebase
    init_firebase(app.config)

    # CORS origins
    allowed_origins = []
    cors_origins = app.config.get('CORS_ALLOWED_ORIGINS', '')
    if cors_origins:
        for origin in cors_origins.split(','):
            origin = origin.strip()
            if origin:
                allowed_origins.append(origin)

    # Handlers must be registered before init_app builds the server
    from atms import events  # noqa: F401

    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins if allowed_origins else None,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'eventlet')
    )

    from atms.errors import register_error_handlers
    register_error_handlers(app)

    # Register current_user before_request
    from atms.decorators import load_current_user

    @app.before_request
    def before_request():
        load_current_user()

    # Register blueprints
    from atms.routes import (
        auth, main, users, courses, enrollments, sessions,
        materials, feedback, grades, activity, notifications
    )
    app.register_blueprint(auth.bp)
    app.register_blueprint(main.bp)
    app.register_blueprint(users.bp)
    app.register_blueprint(courses.bp)
    app.register_blueprint(enrollments.bp)
    app.register_blueprint(sessions.bp)
    app.register_blueprint(materials.bp)
    app.register_blueprint(feedback.bp)
    app.register_blueprint(grades.bp)
    app.register_blueprint(activity.bp)
    app.register_blueprint(notifications.bp)

    from atms.cli import register_commands
    register_commands(app)

    return app
