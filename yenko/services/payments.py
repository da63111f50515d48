"""
Paystack payments: transaction initialisation and webhook confirmation.

Amounts cross the provider boundary in pesewas and are stored in cedis.
"""
import hashlib
import hmac
import logging

import requests
from flask import current_app
from sqlalchemy import select, update

from yenko.errors import InvalidInput, NotFound, UpstreamError
from yenko.extensions import db
from yenko.models import Payment, Ride, utcnow
from yenko.utils import generate_payment_reference, money

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Gateways
# ---------------------------------------------------------------------------
class PaymentGateway:
    """Interface: start a hosted checkout and return its URL."""

    def initialize(self, email, amount_minor, reference, metadata=None):
        raise NotImplementedError


class MockPaymentGateway(PaymentGateway):

    def initialize(self, email, amount_minor, reference, metadata=None):
        logger.info("[DEV] Mock checkout for %s: %s pesewas (%s)", email, amount_minor, reference)
        return {
            "authorization_url": f"https://checkout.paystack.com/mock/{reference}",
            "reference": reference,
        }


class PaystackGateway(PaymentGateway):

    def __init__(self, secret_key, base_url="https://api.paystack.co", callback_url=None, timeout=10):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.callback_url = callback_url
        self.timeout = timeout

    def initialize(self, email, amount_minor, reference, metadata=None):
        payload = {
            "email": email,
            "amount": amount_minor,
            "currency": "GHS",
            "reference": reference,
            "metadata": metadata or {},
        }
        if self.callback_url:
            payload["callback_url"] = self.callback_url

        try:
            resp = requests.post(
                f"{self.base_url}/transaction/initialize",
                json=payload,
                headers={"Authorization": f"Bearer {self.secret_key}"},
                timeout=self.timeout,
            )
            body = resp.json()
        except (requests.RequestException, ValueError):
            logger.exception("Paystack initialise request failed")
            raise UpstreamError("Payment initialization failed")

        if resp.status_code >= 400 or not body.get("status"):
            logger.error("Paystack initialise rejected (%s): %s", resp.status_code, body.get("message"))
            raise UpstreamError("Payment initialization failed")

        data = body.get("data") or {}
        return {
            "authorization_url": data.get("authorization_url"),
            "reference": data.get("reference", reference),
        }


def build_gateway(config):
    if config.get("PAYMENT_GATEWAY") == "paystack":
        return PaystackGateway(
            config.get("PAYSTACK_SECRET_KEY", ""),
            base_url=config.get("PAYSTACK_BASE_URL", "https://api.paystack.co"),
            callback_url=config.get("PAYSTACK_CALLBACK_URL") or None,
        )
    return MockPaymentGateway()


def _gateway():
    gateway = current_app.extensions.get("payment_gateway")
    if gateway is None:
        gateway = build_gateway(current_app.config)
        current_app.extensions["payment_gateway"] = gateway
    return gateway


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------
def initialize_payment(passenger_id, amount_minor, email, metadata=None):
    """
    Create a pending Payment and start a provider checkout.

    Args:
        passenger_id (str): Paying profile
        amount_minor (int): Amount in pesewas
        email (str): Receipt email required by Paystack
        metadata (dict): Optional ``ride_id`` / ``driver_id``

    Returns:
        dict: authorization_url, reference
    """
    if isinstance(amount_minor, bool) or not isinstance(amount_minor, int) or amount_minor <= 0:
        raise InvalidInput("Amount must be a positive whole number of pesewas")
    if not email:
        raise InvalidInput("Email is required")

    metadata = dict(metadata or {})
    ride_id = metadata.get("ride_id")
    driver_id = metadata.get("driver_id")
    if ride_id:
        ride = db.session.get(Ride, ride_id)
        if ride is None or ride.passenger_id != passenger_id:
            raise NotFound("Ride not found")
        driver_id = driver_id or ride.driver_id

    reference = generate_payment_reference()
    checkout = _gateway().initialize(email, amount_minor, reference, metadata)

    payment = Payment(
        passenger_id=passenger_id,
        driver_id=driver_id,
        ride_id=ride_id,
        amount=money(amount_minor / 100),
        provider="paystack",
        reference=checkout["reference"],
        status="pending",
    )
    db.session.add(payment)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Payment %s initialised for %s", payment.reference, passenger_id)
    return checkout


def verify_signature(raw_body, signature, secret):
    """HMAC-SHA512 of the raw body, compared in constant time."""
    if not signature or not secret:
        return False
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


def confirm_payment(reference):
    """Mark a payment paid and flag its ride, if the ride is still pending."""
    payment = db.session.execute(
        select(Payment).where(Payment.reference == reference)
    ).scalar_one_or_none()
    if payment is None:
        raise NotFound("Payment not found")
    if payment.status == "paid":
        return payment

    now = utcnow()
    payment.status = "paid"
    payment.paid_at = now
    if payment.ride_id:
        db.session.execute(
            update(Ride)
            .where(Ride.id == payment.ride_id, Ride.status == "pending")
            .values(payment_confirmed=True, payment_confirmed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Payment %s confirmed", reference)
    return payment
