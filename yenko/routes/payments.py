"""
Payment routes: Paystack checkout initialisation and webhook.
"""
import json
import logging

from flask import Blueprint, current_app, request, jsonify

from yenko.errors import InvalidInput, Unauthenticated
from yenko.extensions import limiter
from yenko.security import require_auth
from yenko.services import initialize_payment, verify_signature, confirm_payment

logger = logging.getLogger(__name__)

payments_bp = Blueprint('payments', __name__, url_prefix='/api/payments')


@payments_bp.route('/paystack/init', methods=['POST'])
@limiter.limit("10 per minute")
@require_auth
def paystack_init(user_id):
    """
    Start a Paystack checkout.
    Body JSON: amount (int, pesewas), email (str), metadata (dict, optional)
    """
    data = request.get_json(silent=True) or {}
    metadata = data.get('metadata') or {}
    if not isinstance(metadata, dict):
        raise InvalidInput('metadata must be an object')
    result = initialize_payment(user_id, data.get('amount'), data.get('email'), metadata)
    return jsonify({'success': True, **result}), 200


@payments_bp.route('/paystack/webhook', methods=['POST'])
@limiter.exempt
def paystack_webhook():
    """Handle Paystack events. The signature is checked before the body is parsed."""
    raw_body = request.get_data()
    signature = request.headers.get('X-Paystack-Signature', '')
    if not verify_signature(raw_body, signature, current_app.config.get('PAYSTACK_SECRET_KEY')):
        logger.warning("Rejected Paystack webhook with invalid signature")
        raise Unauthenticated('Invalid signature', code='INVALID_SIGNATURE')

    try:
        event = json.loads(raw_body)
    except ValueError:
        raise InvalidInput('Invalid payload')
    if not isinstance(event, dict):
        raise InvalidInput('Invalid payload')

    event_type = event.get('event')
    data = event.get('data') or {}
    if not isinstance(data, dict):
        raise InvalidInput('Invalid payload')
    if event_type == 'charge.success':
        reference = data.get('reference')
        if not reference:
            raise InvalidInput('Missing reference')
        confirm_payment(reference)
    else:
        logger.info("Ignoring Paystack event %s", event_type)

    return jsonify({'success': True, 'received': True}), 200
