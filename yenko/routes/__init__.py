"""Route blueprints"""
from .auth import auth_bp
from .passenger import passenger_bp
from .driver import driver_bp
from .matching import matching_bp
from .payments import payments_bp
from .admin import admin_bp
from .waitlist import waitlist_bp

ALL_BLUEPRINTS = (
    auth_bp,
    passenger_bp,
    driver_bp,
    matching_bp,
    payments_bp,
    admin_bp,
    waitlist_bp,
)

__all__ = [
    'auth_bp',
    'passenger_bp',
    'driver_bp',
    'matching_bp',
    'payments_bp',
    'admin_bp',
    'waitlist_bp',
    'ALL_BLUEPRINTS',
]
