"""Error types raised by ATMS handlers and their JSON rendering."""

import logging

from flask import jsonify
from google.api_core.exceptions import GoogleAPIError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ATMSError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, fields=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.fields = fields

    def to_dict(self):
        payload = {'error': self.message}
        if self.fields:
            payload['fields'] = self.fields
        return payload


class BadRequestError(ATMSError):
    status_code = 400


class NotAuthenticatedError(ATMSError):
    status_code = 401


class PermissionDeniedError(ATMSError):
    status_code = 403


class NotFoundError(ATMSError):
    status_code = 404


class ConflictError(ATMSError):
    status_code = 409


class PayloadTooLargeError(ATMSError):
    status_code = 413


def form_error(form, message='Invalid input.'):
    """Build a BadRequestError from a failed WTForms validation."""
    fields = {name: errors[0] for name, errors in form.errors.items() if errors}
    if fields:
        message = next(iter(fields.values()))
    return BadRequestError(message, fields=fields)


def register_error_handlers(app):

    @app.errorhandler(ATMSError)
    def handle_atms_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc):
        return jsonify({'error': exc.description}), exc.code

    @app.errorhandler(GoogleAPIError)
    def handle_backend_error(exc):
        logger.error('Firestore call failed: %s', exc, exc_info=True)
        return jsonify({'error': 'The database is currently unavailable.'}), 502

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        logger.error('Unhandled exception: %s', exc, exc_info=True)
        return jsonify({'error': 'Internal server error.'}), 500
