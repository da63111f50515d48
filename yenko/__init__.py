"""
Yenko ridesharing API.
"""
import logging
import os
import time

from flask import Flask, g, jsonify, request
from flask_cors import CORS

from yenko.config import config
from yenko.errors import register_error_handlers
from yenko.extensions import db, limiter
from yenko.middleware import RequestIdMiddleware, current_request_id
from yenko.otp_store import build_otp_store
from yenko.sanitize import sanitize_json_input

__version__ = "0.3.0"

_startup_logger = logging.getLogger("yenko.startup")
_request_logger = logging.getLogger("yenko.request")

_CRITICAL_ENV_VARS = [
    "JWT_SECRET",
    "SECRET_KEY",
    "DATABASE_URL",
]

_RECOMMENDED_ENV_VARS = [
    "REDIS_URL",
    "TWILIO_ACCOUNT_SID",
    "PAYSTACK_SECRET_KEY",
    "SUPER_ADMIN_KEY",
    "CORS_ORIGINS",
]

_DEFAULT_ORIGINS = [
    "https://yenko.app",
    "https://www.yenko.app",
    "https://admin.yenko.app",
]


def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def _check_environment(config_name):
    if config_name in ("development", "testing"):
        return
    missing_critical = [v for v in _CRITICAL_ENV_VARS if not os.environ.get(v)]
    missing_recommended = [v for v in _RECOMMENDED_ENV_VARS if not os.environ.get(v)]
    if missing_critical:
        _startup_logger.critical(
            "MISSING CRITICAL ENV VARS (app may not work correctly): %s",
            ", ".join(missing_critical),
        )
    if missing_recommended:
        _startup_logger.warning("Missing recommended env vars: %s", ", ".join(missing_recommended))
    if not os.environ.get("SENTRY_DSN"):
        _startup_logger.warning("SENTRY_DSN is not set -- error monitoring is disabled.")


def _allowed_origins(app, is_development):
    origins = app.config.get("CORS_ORIGINS") or []
    if is_development:
        return "*" if not origins or "*" in origins else origins
    if not origins or "*" in origins:
        # Wildcard CORS is never allowed outside development
        _startup_logger.critical(
            "CORS_ORIGINS is '*' or empty in a non-development environment! "
            "Falling back to the default allow-list."
        )
        return _DEFAULT_ORIGINS
    return origins


def create_app(config_name=None):
    """Flask application factory"""
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")
    if config_name not in config:
        config_name = "default"

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    is_development = config_name in ("development", "default")

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _check_environment(config_name)
    _init_sentry(app)

    # Initialize extensions
    CORS(app, resources={r"/api/*": {"origins": _allowed_origins(app, is_development)}})
    db.init_app(app)
    limiter.init_app(app)
    app.extensions["otp_store"] = build_otp_store(app.config)

    register_error_handlers(app)

    from yenko.routes import ALL_BLUEPRINTS
    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)

    @app.route("/api/health", methods=["GET"])
    @limiter.exempt
    def health_check():
        """Health check endpoint (exempt from rate limiting)"""
        return jsonify({"status": "healthy", "service": "Yenko API", "version": __version__}), 200

    @app.before_request
    def start_timer():
        g.request_started = time.monotonic()

    app.before_request(sanitize_json_input)

    @app.after_request
    def log_request(response):
        started = g.get("request_started")
        elapsed_ms = (time.monotonic() - started) * 1000 if started else 0.0
        _request_logger.info(
            "%s %s -> %s (%.1f ms) [%s]",
            request.method, request.path, response.status_code, elapsed_ms, current_request_id(),
        )
        return response

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        response.headers["Content-Security-Policy"] = "default-src 'none'"
        if not is_development:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    with app.app_context():
        db.create_all()

    return app
