"""
Validation utilities
"""
import re

GHANA_PHONE_PATTERN = re.compile(r'^\+233\d{9}$')


def validate_ghana_phone(phone):
    """
    Validate a Ghana phone number in E.164 form

    Args:
        phone (str): Phone number to validate, e.g. +233501234567

    Returns:
        bool: True if valid, False otherwise
    """
    if not phone or not isinstance(phone, str):
        return False

    return bool(GHANA_PHONE_PATTERN.match(phone))


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def parse_bool(value, default=False):
    """Accept JSON booleans and the usual form strings ("true", "1", ...)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def parse_location(value):
    """
    Normalise a pickup/destination into ``{address, lat, lng}``

    Accepts a plain address string or a dict with ``address`` and optional
    coordinates.

    Returns:
        dict: Location, or None if no address was given
    """
    if isinstance(value, str):
        address = value.strip()
        return {'address': address, 'lat': None, 'lng': None} if address else None

    if isinstance(value, dict):
        address = str(value.get('address') or '').strip()
        if not address:
            return None
        return {
            'address': address,
            'lat': safe_coordinate(value.get('lat'), 90),
            'lng': safe_coordinate(value.get('lng'), 180),
        }

    return None


def safe_coordinate(value, limit):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if -limit <= number <= limit:
        return number
    return None
