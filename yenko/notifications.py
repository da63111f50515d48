"""
SMS notifications for Yenko (Twilio).

send_sms() never raises: errors are caught and logged so a provider outage
is reported to the caller as a None result rather than a stack trace.
"""

import logging

from flask import current_app

logger = logging.getLogger(__name__)

_twilio_clients = {}


def sms_configured():
    """True when Twilio credentials and a sender number are set."""
    cfg = current_app.config
    return bool(cfg.get("TWILIO_ACCOUNT_SID") and cfg.get("TWILIO_AUTH_TOKEN") and cfg.get("TWILIO_FROM_NUMBER"))


def _get_twilio():
    """Lazily initialise the Twilio client for the current credentials."""
    sid = current_app.config.get("TWILIO_ACCOUNT_SID")
    token = current_app.config.get("TWILIO_AUTH_TOKEN")
    if not sid or not token:
        return None
    client = _twilio_clients.get(sid)
    if client is None:
        try:
            from twilio.rest import Client
            client = Client(sid, token)
            _twilio_clients[sid] = client
        except Exception:
            logger.exception("Failed to initialise Twilio client")
    return client


def send_sms(to_number, body):
    """Send an SMS via Twilio. Returns message SID or None.

    Never raises. Logs errors and returns None on failure.
    """
    try:
        if not sms_configured():
            logger.info("[DEV] SMS to %s: %s", to_number, body)
            return None

        client = _get_twilio()
        if client is None:
            return None

        message = client.messages.create(
            body=body,
            from_=current_app.config["TWILIO_FROM_NUMBER"],
            to=to_number,
        )
        logger.info("SMS sent to %s (SID: %s)", to_number, message.sid)
        return message.sid
    except Exception:
        logger.exception("Failed to send SMS to %s", to_number)
        return None


def send_otp_sms(phone_number, code):
    """Send a login code via SMS.

    Returns True when the message was handed to the provider, or when no
    provider is configured (development). False means a real dispatch failed.
    """
    minutes = current_app.config.get("OTP_TTL_SECONDS", 300) // 60
    body = "Your Yenko verification code is: {}. It expires in {} minutes.".format(code, minutes)
    sid = send_sms(phone_number, body)
    return sid is not None or not sms_configured()
