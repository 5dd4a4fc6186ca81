import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError

from channel_accounts.utils.exceptions import ApiError, RequestValidationError

logger = logging.getLogger(__name__)


def error_response(message: str, status: int, errors: list | None = None):
    payload = {"statusCode": status, "success": False, "message": message, "errors": errors or []}
    return jsonify(payload), status


def _field_errors(messages) -> list:
    if isinstance(messages, dict):
        return [{"field": field, "messages": msgs} for field, msgs in messages.items()]
    if isinstance(messages, list):
        return [{"field": "_schema", "messages": messages}]
    return [{"field": "_schema", "messages": [str(messages)]}]


def register_error_handlers(app):
    # Domain errors carry their own status and public message
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("%s: %s", err.__class__.__name__, err.message, exc_info=err.__cause__)
        return jsonify(err.to_dict()), err.status_code

    # Marshmallow validation errors surface as RequestValidationError (400)
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return handle_api_error(RequestValidationError(errors=_field_errors(err.messages)))

    # Unique constraints lost to a concurrent writer
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        lower_msg = str(getattr(err, "orig", err)).lower()
        if "unique" in lower_msg:
            return error_response("An account with this username or email already exists", 409)
        logger.exception("Integrity error", exc_info=err)
        return error_response("Integrity error", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        errors = None
        if app.debug:
            errors = [{"type": err.__class__.__name__, "message": str(err)}]
        return error_response("An unexpected error occurred", 500, errors)
