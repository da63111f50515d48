"""Input sanitization for JSON request bodies."""

import html

from flask import request

# Bodies that must reach the view byte-for-byte (signed webhooks).
SANITIZE_SKIP_PREFIXES = ("/api/payments/paystack/webhook",)


def sanitize_string(value):
    """Escape HTML entities in a string.

    Converts < > & " ' to their HTML entity equivalents so that
    user-supplied strings cannot inject markup or script tags.
    """
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=True)


def sanitize_dict(data):
    """Recursively walk a dict/list structure and sanitize all string values.

    Non-string leaves (int, float, bool, None) are returned unchanged.
    """
    if isinstance(data, dict):
        return {key: sanitize_dict(value) for key, value in data.items()}
    if isinstance(data, list):
        return [sanitize_dict(item) for item in data]
    if isinstance(data, str):
        return sanitize_string(data)
    return data


def sanitize_json_input():
    """before_request hook: replace the cached JSON body with a sanitized copy."""
    if request.path.startswith(SANITIZE_SKIP_PREFIXES) or not request.is_json:
        return None

    raw = request.get_json(silent=True)
    if raw is not None:
        sanitized = sanitize_dict(raw)
        # get_json() caches (silent, non-silent) results; prime both
        request._cached_json = (sanitized, sanitized)
    return None
