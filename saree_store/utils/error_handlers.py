from flask import request
from flask_limiter.errors import RateLimitExceeded
from marshmallow import ValidationError
from pymongo.errors import PyMongoError

from ..constants.service_code import ERROR_MESSAGES
from .errors import AppError
from .json_response import prepared_response
from .logger import Log


def _tag(handler):
    return f"[error_handlers.py][{handler}][{request.method} {request.path}]"


def handle_app_error(error):
    # AppErrors raised outside a resource's own try block
    return prepared_response(False, error.status_code, error.message, errors=[error.message])


def handle_validation_error(error):
    return prepared_response(
        False, "BAD_REQUEST", ERROR_MESSAGES["VALIDATION_FAILED"], errors=error.messages,
    )


def handle_permission_error(error):
    Log.info(f"{_tag('handle_permission_error')} {error}")
    return prepared_response(False, "FORBIDDEN", str(error) or ERROR_MESSAGES["UNAUTHORIZED_ACCESS"])


def handle_type_error(error):
    Log.error(f"{_tag('handle_type_error')} {error}")
    return prepared_response(False, "BAD_REQUEST", "Malformed request", errors=[str(error)])


def handle_database_error(error):
    Log.error(f"{_tag('handle_database_error')} {error}")
    return prepared_response(False, "SERVICE_UNAVAILABLE", "The database is unavailable, please retry shortly")


def handle_rate_limit(error):
    # description carries the limiter's error_message
    return prepared_response(
        False, "TOO_MANY_REQUESTS", error.description or "Too many requests, please try again later.",
    )


def register_error_handlers(app):
    app.register_error_handler(AppError, handle_app_error)
    app.register_error_handler(ValidationError, handle_validation_error)
    app.register_error_handler(PermissionError, handle_permission_error)
    app.register_error_handler(TypeError, handle_type_error)
    app.register_error_handler(PyMongoError, handle_database_error)
    app.register_error_handler(RateLimitExceeded, handle_rate_limit)
