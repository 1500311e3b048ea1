from flask import jsonify
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException


class APIError(Exception):
    """Base error rendered as {success: false, message, [errors]}."""

    status_code = 500

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def to_dict(self):
        body = {'success': False, 'message': self.message}
        if self.errors:
            body['errors'] = self.errors
        return body


class Unauthenticated(APIError):
    status_code = 401


class Forbidden(APIError):
    status_code = 403


class InvalidArgument(APIError):
    status_code = 400


class NotFound(APIError):
    status_code = 404


class InternalError(APIError):
    status_code = 500


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(ex):
        if ex.status_code >= 500:
            app.logger.error("Request failed: %s", ex.message)
        return jsonify(ex.to_dict()), ex.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(ex):
        return jsonify({'success': False, 'message': ex.description or ex.name}), ex.code

    @app.errorhandler(PyMongoError)
    def handle_store_error(ex):
        app.logger.exception("Database error: %s", ex)
        return jsonify({'success': False, 'message': 'Database error'}), 500

    @app.errorhandler(Exception)
    def handle_unexpected(ex):
        app.logger.exception("Unhandled exception: %s", ex)
        return jsonify({'success': False, 'message': 'Internal server error'}), 500
