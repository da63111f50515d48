"""
Session tokens and the auth decorators.

Tokens are stateless HS256 JWTs. They are good enough to identify the caller;
anything that depends on the caller's role re-reads the stored profile.
"""
import time
from functools import wraps

import jwt
from flask import current_app, g, request

from yenko.errors import Unauthenticated, TokenExpired, InvalidToken, Forbidden
from yenko.extensions import db


def generate_token(user_id, phone, role):
    """Mint a session token for an account."""
    now = int(time.time())
    lifetime = current_app.config['JWT_ACCESS_TOKEN_EXPIRES']
    payload = {
        'user_id': user_id,
        'phone': phone,
        'role': role,
        'iat': now,
        'exp': now + int(lifetime.total_seconds()),
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET'],
        algorithm=current_app.config['JWT_ALGORITHM'],
    )


def decode_token(token):
    """Decode and verify a session token, raising the matching API error."""
    try:
        payload = jwt.decode(
            token,
            current_app.config['JWT_SECRET'],
            algorithms=[current_app.config['JWT_ALGORITHM']],
            options={'require': ['exp', 'iat']},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidTokenError:
        raise InvalidToken()

    if not payload.get('user_id') or not payload.get('role'):
        raise InvalidToken()
    return payload


def _bearer_token():
    auth_header = request.headers.get('Authorization')
    if not auth_header:
        raise Unauthenticated('No authorization header provided')
    if not auth_header.startswith('Bearer '):
        raise Unauthenticated('Invalid authorization format. Use: Bearer <token>')
    token = auth_header[len('Bearer '):].strip()
    if not token:
        raise Unauthenticated('No token provided')
    return token


def require_auth(f):
    """Decorator to require a valid session token; passes ``user_id`` to the view."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        payload = decode_token(_bearer_token())
        g.user_id = payload['user_id']
        g.user_phone = payload.get('phone')
        g.user_role = payload['role']
        return f(user_id=payload['user_id'], *args, **kwargs)
    return decorated_function


def require_role(*roles):
    """
    Wrap require_auth and additionally check the caller's role.

    The role comes from the stored profile, not from the token, so a role
    change or suspension takes effect before the old token expires.
    """
    def decorator(f):
        @wraps(f)
        @require_auth
        def wrapper(user_id, *args, **kwargs):
            from yenko.models import Profile

            profile = db.session.get(Profile, user_id)
            if not profile:
                raise Forbidden('Account not found')
            if profile.suspended:
                raise Forbidden('Account suspended')
            if profile.role not in roles:
                raise Forbidden('Access denied. Required role: {}'.format(' or '.join(roles)))
            g.user_role = profile.role
            return f(user_id=user_id, *args, **kwargs)
        return wrapper
    return decorator


require_passenger = require_role('passenger')
require_driver = require_role('driver')
require_admin = require_role('admin')
