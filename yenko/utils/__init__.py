"""Utilities package"""
from .validators import validate_ghana_phone, validate_email, parse_bool, parse_location
from .helpers import generate_trip_code, generate_payment_reference, safe_float, safe_int, money

__all__ = [
    'validate_ghana_phone',
    'validate_email',
    'parse_bool',
    'parse_location',
    'generate_trip_code',
    'generate_payment_reference',
    'safe_float',
    'safe_int',
    'money',
]
