"""
Helper utilities
"""
import secrets
import string
import time

TRIP_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_trip_code(length=4):
    """
    Generate a short code the passenger reads back to the driver

    Returns:
        str: Uppercase alphanumeric code
    """
    return ''.join(secrets.choice(TRIP_CODE_ALPHABET) for _ in range(length))


def generate_payment_reference(prefix='yenko'):
    """
    Generate a unique provider reference, e.g. yenko_1718000000000_k3j9x2a

    Returns:
        str: Reference string
    """
    alphabet = string.ascii_lowercase + string.digits
    suffix = ''.join(secrets.choice(alphabet) for _ in range(7))
    return f'{prefix}_{int(time.time() * 1000)}_{suffix}'


def safe_float(value, default=0.0):
    """
    Safely convert value to float

    Args:
        value: Value to convert
        default (float): Default value if conversion fails

    Returns:
        float: Converted value or default
    """
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def safe_int(value, default=0):
    """
    Safely convert value to int

    Args:
        value: Value to convert
        default (int): Default value if conversion fails

    Returns:
        int: Converted value or default
    """
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def money(amount):
    """Round a cedi amount to pesewas."""
    return round(float(amount or 0), 2)
