# nest_api/common/errors.py
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from nest_api.common.http import fail
from nest_api.extensions import db


class APIError(Exception):
    """Base API error; rendered into the standard failure envelope."""
    status_code = 400
    code = None

    def __init__(self, message, code=None, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload


class Unauthorized(APIError):
    status_code = 401
    code = "auth.unauthorized"


class Forbidden(APIError):
    status_code = 403
    code = "auth.forbidden"


class AccessDenied(Forbidden):
    code = "company.access_denied"


class NotFound(APIError):
    status_code = 404
    code = "not_found"


class Conflict(APIError):
    status_code = 409
    code = "conflict"


class ValidationError(APIError):
    status_code = 422
    code = "validation_error"

    def __init__(self, errors: dict, message="Validation error"):
        super().__init__(message)
        self.errors = errors


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        db.session.rollback()
        return fail(e.message, status=e.status_code, code=e.code, errors=e.errors)

    @app.errorhandler(APIError)
    def _api_error(e: APIError):
        db.session.rollback()
        return fail(e.message, status=e.status_code, code=e.code, detail=e.payload)

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500)

    @app.errorhandler(IntegrityError)
    def _integrity(e: IntegrityError):
        db.session.rollback()
        app.logger.warning("Integrity error: %s", getattr(e, "orig", e))
        return fail("Duplicate or FK constraint failed", status=409, code="CONSTRAINT_ERROR")

    @app.errorhandler(Exception)
    def _500(e: Exception):
        db.session.rollback()
        app.logger.exception(e)
        return fail("Internal server error", status=500)
