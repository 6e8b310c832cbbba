"""
Centralized error handling
API error taxonomy, route decorators and the application-wide JSON error handlers
"""

import logging
import traceback
from functools import wraps
from flask import request, jsonify
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from models import db

# Configure logging
logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors whose message is safe to return to the client"""
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        if status_code:
            self.status_code = status_code

    def to_response(self):
        return jsonify({'error': self.message}), self.status_code


class ValidationError(APIError):
    status_code = 400
    message = 'Invalid request'


class UnauthorizedError(APIError):
    status_code = 401
    message = 'Access token required'


class ForbiddenError(APIError):
    status_code = 403
    message = 'Invalid or expired token'


class NotFoundError(APIError):
    status_code = 404
    message = 'Not found'


class ConflictError(APIError):
    """Duplicate data; reported as a bad request"""
    status_code = 400
    message = 'Resource already exists'


class ConcurrentUpdateError(ConflictError):
    status_code = 409
    message = 'Resource was updated by another request, please retry'


class InternalError(APIError):
    status_code = 500
    message = 'Internal server error'


class ErrorHandler:
    """Centralized error logging; client responses never carry these details"""

    @staticmethod
    def handle_database_error(error, context="Database operation"):
        """Log database-related errors by kind"""
        if isinstance(error, IntegrityError):
            logger.warning(f"{context} - Integrity constraint violation: {str(error)}")
        elif isinstance(error, OperationalError):
            logger.error(f"{context} - Database connection error: {str(error)}")
        else:
            logger.error(f"{context} - Database error: {str(error)}")

    @staticmethod
    def handle_generic_error(error, context="Operation"):
        """Log generic errors with their traceback"""
        logger.error(f"{context} - Generic error: {str(error)}")
        logger.error(f"Traceback: {traceback.format_exc()}")


def is_unique_violation(error):
    """True when an IntegrityError comes from a UNIQUE constraint or index"""
    if not isinstance(error, IntegrityError):
        return False
    orig = getattr(error, 'orig', None)
    # MySQL reports ER_DUP_ENTRY (1062); SQLite and others only say it in text
    if orig is not None and getattr(orig, 'args', None) and orig.args[0] == 1062:
        return True
    text = str(orig if orig is not None else error).lower()
    return 'unique' in text or 'duplicate' in text


def safe_route_handler(message='Internal server error'):
    """Decorator for route handlers: client errors pass through, anything else
    is rolled back, logged and reported as a generic 500"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except (APIError, HTTPException):
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                ErrorHandler.handle_database_error(e, f"Route {f.__name__}")
                raise InternalError(message)
            except Exception as e:
                db.session.rollback()
                ErrorHandler.handle_generic_error(e, f"Route {f.__name__}")
                raise InternalError(message)
        return decorated_function
    return decorator


def validate_request_data(required_fields=None, message=None):
    """Decorator to validate the JSON body and pass it on as validated_data"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                data = {}

            # Check required fields
            if required_fields:
                missing_fields = [field for field in required_fields if _is_blank(data.get(field))]
                if missing_fields:
                    logger.warning(f"{request.method} {request.path} missing fields: {', '.join(missing_fields)}")
                    raise ValidationError(message or f"Missing required fields: {', '.join(missing_fields)}")

            kwargs['validated_data'] = data
            return func(*args, **kwargs)

        return wrapper
    return decorator


def _is_blank(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list)):
        return not value
    return False


def register_error_handlers(app):
    @app.errorhandler(APIError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {error.message}")
        else:
            logger.warning(f"{request.method} {request.path} -> {error.status_code}: {error.message}")
        return error.to_response()

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        logger.warning(f"{error.code} error: {request.method} {request.url}")
        return jsonify({'error': error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        logger.error(f"Unhandled exception: {str(error)}", exc_info=True)
        try:
            db.session.rollback()
        except Exception as db_error:
            logger.error(f"Database rollback failed: {str(db_error)}")
        return jsonify({'error': 'Something went wrong!'}), 500
