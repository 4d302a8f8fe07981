# Overview: Maps domain exceptions raised by services onto JSON error responses.

from flask import jsonify

from ..services.auth_service import PasswordValidationError, PermissionDeniedError
from ..services.reporting_service import ReportError
from ..services.stock_service import InsufficientStockError
from ..services.storage_service import UploadError
from ..validation import ConflictError, NotFoundError, ValidationError


# Order matters: first match wins
_STATUS_BY_ERROR = (
    (InsufficientStockError, 409),
    (ValidationError, 400),
    (PasswordValidationError, 400),
    (ReportError, 400),
    (PermissionDeniedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (UploadError, 502),
)

DOMAIN_ERRORS = tuple(error for error, _ in _STATUS_BY_ERROR)


def domain_error_response(e: Exception):
    status = next(code for error, code in _STATUS_BY_ERROR if isinstance(e, error))
    body = {"error": str(e)}
    details = getattr(e, "details", None)
    if details:
        body["details"] = details
    return jsonify(body), status
