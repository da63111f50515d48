"""
Authentication routes: OTP login, onboarding and session management.
"""
from flask import Blueprint, request, jsonify

from yenko.extensions import limiter
from yenko.security import require_auth
from yenko.services import AuthService

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

auth_service = AuthService()


@auth_bp.route('/request-otp', methods=['POST'])
@limiter.limit("5 per minute")
def request_otp():
    """Send a login code to a Ghana phone number."""
    data = request.get_json(silent=True) or {}
    result = auth_service.request_otp(data.get('phone'))
    return jsonify({'success': True, 'message': 'OTP sent successfully', **result}), 200


@auth_bp.route('/verify-otp', methods=['POST'])
@limiter.limit("10 per minute")
def verify_otp():
    data = request.get_json(silent=True) or {}
    result = auth_service.verify_otp(data.get('phone'), data.get('otp'))
    return jsonify({'success': True, 'message': 'Login successful', **result}), 200


@auth_bp.route('/setup-profile', methods=['POST'])
@require_auth
def setup_profile(user_id):
    data = request.get_json(silent=True) or {}
    result = auth_service.setup_profile(
        user_id,
        full_name=data.get('full_name'),
        role=data.get('role'),
        profile_photo=data.get('profile_photo'),
    )
    return jsonify({'success': True, 'message': 'Profile saved', **result}), 200


@auth_bp.route('/setup-vehicle', methods=['POST'])
@require_auth
def setup_vehicle(user_id):
    data = request.get_json(silent=True) or {}
    result = auth_service.setup_vehicle(user_id, data)
    return jsonify({'success': True, 'message': 'Vehicle registered', **result}), 200


@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user(user_id):
    result = auth_service.me(user_id)
    return jsonify({'success': True, **result}), 200


@auth_bp.route('/refresh', methods=['POST'])
@require_auth
def refresh_token(user_id):
    """Re-issue a token from the stored profile."""
    result = auth_service.refresh(user_id)
    return jsonify({'success': True, **result}), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    # Tokens are stateless; the client discards its copy.
    return jsonify({'success': True, 'message': 'Logged out successfully'}), 200


@auth_bp.route('/profile', methods=['PATCH'])
@require_auth
def update_profile(user_id):
    data = request.get_json(silent=True) or {}
    result = auth_service.update_profile(
        user_id,
        full_name=data.get('full_name'),
        profile_photo=data.get('profile_photo'),
    )
    return jsonify({'success': True, 'message': 'Profile updated', **result}), 200
