import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from utils.exceptions import AppError

logger = logging.getLogger(__name__)


def success_response(data, status: int = 200):
    return jsonify({"success": True, "data": data}), status


def message_response(message: str, status: int = 200):
    return jsonify({"success": True, "message": message}), status


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"success": False, "error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "VALIDATION_ERROR",
}


def register_error_handlers(app):
    # Typed application errors carry their own status and safe message
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        return error_response(err.code, err.message, err.status)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Integrity errors (unique constraints, FK violations); database text stays in the log
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        logger.warning("integrity error: %s", message)
        if "unique" in message:
            return error_response("CONFLICT", "Unique constraint violated.", 409)
        if "foreign key" in message:
            return error_response("BAD_REQUEST", "Foreign key constraint failed.", 400)
        return error_response("BAD_REQUEST", "Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 400
        return error_response(_HTTP_CODES.get(status, "ERROR"), err.description, status)

    # 500 Internal Error (catch-all); details are logged, never returned
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500)
