"""
Yenko SQLAlchemy models
"""
from yenko.extensions import db
from .base import generate_uuid, utcnow
from .profile import Profile, Driver, Passenger, DriverRoute
from .ride import Ride, Rating, RIDE_STATUSES, ACTIVE_STATUSES
from .payment import Payment, WaitlistEntry

__all__ = [
    'db',
    'generate_uuid',
    'utcnow',
    'Profile',
    'Driver',
    'Passenger',
    'DriverRoute',
    'Ride',
    'Rating',
    'Payment',
    'WaitlistEntry',
    'RIDE_STATUSES',
    'ACTIVE_STATUSES',
]
