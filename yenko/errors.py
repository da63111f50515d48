"""
Error taxonomy for the Yenko API.

Services raise these; the handlers registered in create_app() turn them into
the standard ``{"success": false, "message": ..., "code": ...}`` body.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    status_code = 500
    code = "UNEXPECTED"
    message = "Internal server error"

    def __init__(self, message=None, code=None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if code:
            self.code = code

    def to_dict(self):
        return {"success": False, "message": self.message, "code": self.code}


# ---------------------------------------------------------------------------
# 400 - validation
# ---------------------------------------------------------------------------
class InvalidInput(APIError):
    status_code = 400
    code = "INVALID_INPUT"
    message = "Invalid input"


class InvalidPhone(InvalidInput):
    code = "INVALID_PHONE"
    message = "Valid Ghana phone number required (+233XXXXXXXXX)"


# ---------------------------------------------------------------------------
# 401 - authentication
# ---------------------------------------------------------------------------
class Unauthenticated(APIError):
    status_code = 401
    code = "UNAUTHENTICATED"
    message = "Authentication required"


class TokenExpired(Unauthenticated):
    code = "TOKEN_EXPIRED"
    message = "Token expired. Please login again."


class InvalidToken(Unauthenticated):
    code = "INVALID_TOKEN"
    message = "Invalid token"


# ---------------------------------------------------------------------------
# 403 / 404
# ---------------------------------------------------------------------------
class Forbidden(APIError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Access denied"


class NotFound(APIError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


# ---------------------------------------------------------------------------
# Conflict class: the originating user action may be retried, not the call
# ---------------------------------------------------------------------------
class Conflict(APIError):
    status_code = 400
    code = "CONFLICT"
    message = "Request conflicts with current state"


class OtpNotFound(Conflict):
    code = "OTP_NOT_FOUND"
    message = "OTP expired or not found. Please request a new one."


class OtpExpired(Conflict):
    code = "OTP_EXPIRED"
    message = "OTP expired. Please request a new one."


class OtpMismatch(Conflict):
    code = "OTP_MISMATCH"
    message = "Invalid OTP. Please try again."


class InvalidTransition(Conflict):
    code = "INVALID_TRANSITION"
    message = "Ride cannot move to that status"


# ---------------------------------------------------------------------------
# 500 - store / provider failures, never leak detail
# ---------------------------------------------------------------------------
class UpstreamError(APIError):
    status_code = 500
    code = "UPSTREAM_ERROR"
    message = "Service temporarily unavailable"


def register_error_handlers(app):
    """Render every failure in the ``{success, message}`` shape."""

    @app.errorhandler(APIError)
    def handle_api_error(e):
        if e.status_code >= 500:
            logger.error("%s: %s", e.code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(429)
    def ratelimit_handler(e):
        # Retry-After header is set by Flask-Limiter; read it back.
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        return jsonify({
            "success": False,
            "message": "Too many requests. Please try again later.",
            "code": "RATE_LIMITED",
            "retry_after": int(retry_after) if retry_after else 60,
        }), 429

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        message = "Endpoint not found" if e.code == 404 else e.description
        return jsonify({"success": False, "message": message}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"success": False, "message": "Internal server error"}), 500
