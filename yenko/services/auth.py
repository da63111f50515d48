"""Authentication service - OTP login, profile and vehicle setup"""
import logging
import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from yenko.errors import (
    InvalidInput, InvalidPhone, Forbidden, NotFound, Conflict, UpstreamError,
    OtpNotFound, OtpExpired, OtpMismatch,
)
from yenko.extensions import db
from yenko.models import Profile, Driver, Passenger, utcnow
from yenko.notifications import send_otp_sms, sms_configured
from yenko.otp_store import OtpEntry
from yenko.security import generate_token
from yenko.services.onboarding import resolve
from yenko.utils import validate_ghana_phone

logger = logging.getLogger(__name__)

SELECTABLE_ROLES = ("driver", "passenger")
VEHICLE_FIELDS = ("car_make", "car_model", "car_year", "car_color", "plate_number")


def _otp_store():
    return current_app.extensions["otp_store"]


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class AuthService:
    """Service for authentication operations"""

    # ------------------------------------------------------------------
    # OTP
    # ------------------------------------------------------------------
    def request_otp(self, phone):
        """Issue a fresh code for ``phone``, replacing any pending one."""
        if not validate_ghana_phone(phone):
            raise InvalidPhone()

        length = current_app.config.get("OTP_LENGTH", 6)
        code = "".join(secrets.choice("0123456789") for _ in range(length))
        expires_at = utcnow() + timedelta(seconds=current_app.config["OTP_TTL_SECONDS"])
        _otp_store().put(phone, OtpEntry(code=code, expires_at=expires_at))

        is_new_user = self._find_by_phone(phone) is None

        if not send_otp_sms(phone, code):
            logger.error("OTP dispatch failed for %s", phone)
            raise UpstreamError("Failed to send OTP")

        result = {"isNewUser": is_new_user}
        if current_app.config.get("OTP_DEV_MODE"):
            result["otp"] = code
        elif not sms_configured():
            logger.warning("SMS provider not configured and OTP_DEV_MODE is off")
        return result

    def verify_otp(self, phone, code):
        """Consume the pending code and sign the caller in."""
        if not phone or code is None or code == "":
            raise InvalidInput("Phone and OTP required")
        if isinstance(code, bool) or not isinstance(code, (str, int)):
            raise InvalidInput("OTP must be a string of digits")
        if isinstance(code, int):
            # JSON numbers lose leading zeros
            code = str(code).zfill(current_app.config.get("OTP_LENGTH", 6))

        store = _otp_store()
        entry = store.pop(phone)
        if entry is None:
            raise OtpNotFound()
        if entry.is_expired(utcnow()):
            raise OtpExpired()
        if not secrets.compare_digest(entry.code.encode("utf-8"), code.strip().encode("utf-8")):
            store.restore(phone, entry)
            raise OtpMismatch()

        profile = self._find_by_phone(phone)
        is_new_user = profile is None
        if is_new_user:
            profile = self._create_account(phone)
            logger.info("New account created for %s", phone)
        elif profile.suspended:
            raise Forbidden("Account suspended")

        response = self._session_payload(profile)
        response["isNewUser"] = is_new_user
        return response

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def me(self, user_id):
        profile = self._load_active(user_id)
        response = self._session_payload(profile)
        response["driver"] = profile.driver.to_dict() if profile.driver else None
        return response

    def refresh(self, user_id):
        """Re-issue a token from the stored role and phone."""
        profile = self._load_active(user_id)
        return {"token": self._token_for(profile)}

    # ------------------------------------------------------------------
    # Onboarding
    # ------------------------------------------------------------------
    def setup_profile(self, user_id, full_name, role, profile_photo=None):
        full_name = _clean(full_name)
        role = _clean(role)
        if not full_name or not role:
            raise InvalidInput("Full name and role are required")
        role = role.lower()
        if role not in SELECTABLE_ROLES:
            raise InvalidInput("Role must be driver or passenger")

        profile = self._load_active(user_id)
        profile.full_name = full_name
        if profile_photo is not None:
            profile.profile_photo = _clean(profile_photo)
        # admins keep their role
        if profile.role != "admin":
            profile.role = role

        if profile.role == "driver" and profile.driver is None:
            db.session.add(Driver(id=profile.id))
        elif profile.role == "passenger" and profile.passenger is None:
            db.session.add(Passenger(id=profile.id))

        self._commit()
        return self._session_payload(profile)

    def setup_vehicle(self, user_id, data):
        profile = self._load_active(user_id)
        if profile.role != "driver":
            raise Forbidden("Only drivers can register a vehicle")

        values = {field: _clean(data.get(field)) for field in VEHICLE_FIELDS}
        missing = [field for field, value in values.items() if not value]
        if missing:
            raise InvalidInput("Missing vehicle details: {}".format(", ".join(missing)))
        values["plate_number"] = values["plate_number"].upper()

        taken = db.session.execute(
            select(Driver.id).where(Driver.plate_number == values["plate_number"], Driver.id != profile.id)
        ).first()
        if taken:
            raise Conflict("A vehicle with this plate number is already registered", code="PLATE_TAKEN")

        driver = profile.driver
        if driver is None:
            driver = Driver(id=profile.id)
            db.session.add(driver)
            profile.driver = driver
        for field, value in values.items():
            setattr(driver, field, value)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("A vehicle with this plate number is already registered", code="PLATE_TAKEN")

        response = self._session_payload(profile)
        response["driver"] = driver.to_dict()
        return response

    def update_profile(self, user_id, full_name=None, profile_photo=None):
        full_name = _clean(full_name)
        if full_name is None and profile_photo is None:
            raise InvalidInput("Nothing to update")

        profile = self._load_active(user_id)
        if full_name is not None:
            profile.full_name = full_name
        if profile_photo is not None:
            profile.profile_photo = _clean(profile_photo)
        self._commit()
        return self._session_payload(profile)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _find_by_phone(phone):
        return db.session.execute(select(Profile).where(Profile.phone == phone)).scalar_one_or_none()

    @staticmethod
    def _create_account(phone):
        profile = Profile(phone=phone, role="passenger")
        try:
            db.session.add(profile)
            db.session.flush()
            db.session.add(Passenger(id=profile.id))
            db.session.commit()
        except IntegrityError:
            # lost a race with another verification for the same phone
            db.session.rollback()
            profile = db.session.execute(select(Profile).where(Profile.phone == phone)).scalar_one()
        return profile

    @staticmethod
    def _load_active(user_id):
        profile = db.session.get(Profile, user_id)
        if profile is None:
            raise NotFound("User not found")
        if profile.suspended:
            raise Forbidden("Account suspended")
        return profile

    @staticmethod
    def _token_for(profile):
        return generate_token(profile.id, profile.phone, profile.role)

    def _session_payload(self, profile):
        return {
            "token": self._token_for(profile),
            "user": profile.to_public_dict(),
            "onboardingStatus": resolve(profile, profile.driver).to_dict(),
        }

    @staticmethod
    def _commit():
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
