"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when route
blueprints need access to extensions that are initialised in create_app().
"""

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

# Storage (Redis in production, memory:// otherwise) and the enabled flag are
# read from RATELIMIT_* app config when init_app() runs.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["100 per minute"],
)
