"""
Admin API routes for Yenko.
Protected by role-based access (admin only).
"""
import hmac
import logging

from flask import Blueprint, current_app, request, jsonify
from sqlalchemy import delete, select, update

from yenko.errors import InvalidInput, Forbidden, NotFound
from yenko.extensions import db
from yenko.models import Profile, Driver, DriverRoute, Ride, Rating, Payment, WaitlistEntry
from yenko.security import require_admin, require_auth
from yenko.services import TripService, platform_analytics, recent_activity
from yenko.utils import parse_bool

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

trip_service = TripService()

_PROFILE_REFERENCES = (
    (Ride, Ride.passenger_id),
    (Ride, Ride.driver_id),
    (Rating, Rating.passenger_id),
    (Rating, Rating.driver_id),
    (Payment, Payment.passenger_id),
    (Payment, Payment.driver_id),
)


def _get_profile(profile_id):
    profile = db.session.get(Profile, profile_id) if profile_id else None
    if profile is None:
        raise NotFound("User not found")
    return profile


def _commit():
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


@admin_bp.route("/users", methods=["GET"])
@require_admin
def list_users(user_id):
    query = select(Profile).order_by(Profile.created_at.desc())
    role = request.args.get("role")
    if role:
        query = query.where(Profile.role == role)
    users = db.session.execute(query).scalars().all()
    return jsonify({"success": True, "users": [u.to_dict() for u in users]}), 200


@admin_bp.route("/drivers", methods=["GET"])
@require_admin
def list_drivers(user_id):
    rows = db.session.execute(
        select(Driver, Profile).join(Profile, Profile.id == Driver.id).order_by(Profile.created_at.desc())
    ).all()
    drivers = []
    for driver, profile in rows:
        item = driver.to_dict()
        item.update({
            "full_name": profile.full_name,
            "phone": profile.phone,
            "profile_photo": profile.profile_photo,
            "rating": profile.rating,
            "role": profile.role,
            "suspended": bool(profile.suspended),
        })
        drivers.append(item)
    return jsonify({"success": True, "drivers": drivers}), 200


@admin_bp.route("/trips", methods=["GET"])
@require_admin
def list_trips(user_id):
    query = select(Ride).order_by(Ride.created_at.desc())
    status = request.args.get("status")
    if status:
        query = query.where(Ride.status == status)
    trips = db.session.execute(query).scalars().all()
    return jsonify({"success": True, "trips": [t.to_dict() for t in trips]}), 200


@admin_bp.route("/trips/<ride_id>/cancel", methods=["POST"])
@require_admin
def cancel_trip(user_id, ride_id):
    """Cancel any ride that has not finished, including started ones."""
    ride = trip_service.cancel_ride(user_id, ride_id, is_admin=True)
    logger.info("Admin %s cancelled ride %s", user_id, ride_id)
    return jsonify({"success": True, "message": "Ride cancelled", "ride": ride.to_dict()}), 200


@admin_bp.route("/verify-driver", methods=["POST"])
@require_admin
def verify_driver(user_id):
    data = request.get_json(silent=True) or {}
    driver_id = data.get("driver_id")
    if not driver_id:
        raise InvalidInput("driver_id is required")
    driver = db.session.get(Driver, driver_id)
    if driver is None:
        raise NotFound("Driver not found")

    driver.verified = parse_bool(data.get("verified"), default=True)
    _commit()
    logger.info("Admin %s set driver %s verified=%s", user_id, driver_id, driver.verified)
    return jsonify({
        "success": True,
        "message": "Driver verified" if driver.verified else "Driver unverified",
        "driver": driver.to_dict(),
    }), 200


@admin_bp.route("/suspend-user", methods=["POST"])
@require_admin
def suspend_user(user_id):
    data = request.get_json(silent=True) or {}
    target_id = data.get("user_id")
    if not target_id:
        raise InvalidInput("user_id is required")
    if target_id == user_id:
        raise InvalidInput("You cannot suspend your own account")

    profile = _get_profile(target_id)
    profile.suspended = parse_bool(data.get("suspend"), default=True)
    _commit()
    logger.info("Admin %s set user %s suspended=%s", user_id, target_id, profile.suspended)
    return jsonify({
        "success": True,
        "message": "User suspended" if profile.suspended else "User activated",
        "user": profile.to_dict(),
    }), 200


@admin_bp.route("/delete-user/<target_id>", methods=["DELETE"])
@require_admin
def delete_user(user_id, target_id):
    if target_id == user_id:
        raise InvalidInput("You cannot delete your own account")
    profile = _get_profile(target_id)
    # history rows outlive the account; SQLite does not apply ON DELETE SET NULL
    for model, column in _PROFILE_REFERENCES:
        db.session.execute(
            update(model)
            .where(column == target_id)
            .values({column.key: None})
            .execution_options(synchronize_session=False)
        )
    db.session.execute(
        delete(DriverRoute)
        .where(DriverRoute.driver_id == target_id)
        .execution_options(synchronize_session=False)
    )
    db.session.delete(profile)
    _commit()
    logger.info("Admin %s deleted user %s", user_id, target_id)
    return jsonify({"success": True, "message": "User deleted"}), 200


@admin_bp.route("/user/<target_id>", methods=["GET"])
@require_admin
def user_detail(user_id, target_id):
    profile = _get_profile(target_id)
    trips = db.session.execute(
        select(Ride)
        .where((Ride.passenger_id == target_id) | (Ride.driver_id == target_id))
        .order_by(Ride.created_at.desc())
    ).scalars().all()
    return jsonify({
        "success": True,
        "user": profile.to_dict(),
        "trips": [t.to_dict() for t in trips],
        "driverInfo": profile.driver.to_dict() if profile.driver else None,
    }), 200


@admin_bp.route("/waitlist", methods=["GET"])
@require_admin
def list_waitlist(user_id):
    entries = db.session.execute(
        select(WaitlistEntry).order_by(WaitlistEntry.created_at.desc())
    ).scalars().all()
    return jsonify({"success": True, "waitlist": [e.to_dict() for e in entries]}), 200


@admin_bp.route("/analytics", methods=["GET"])
@require_admin
def analytics(user_id):
    return jsonify({"success": True, "analytics": platform_analytics()}), 200


@admin_bp.route("/recent-activity", methods=["GET"])
@require_admin
def activity(user_id):
    return jsonify({"success": True, **recent_activity()}), 200


@admin_bp.route("/promote-admin", methods=["POST"])
@require_auth
def promote_admin(user_id):
    """Grant the admin role. Needs the X-Super-Admin-Key header."""
    expected = current_app.config.get("SUPER_ADMIN_KEY") or ""
    provided = request.headers.get("X-Super-Admin-Key") or ""
    if not expected or not hmac.compare_digest(expected, provided):
        raise Forbidden("Unauthorized: Super admin key required")

    data = request.get_json(silent=True) or {}
    target_id = data.get("user_id")
    if not target_id:
        raise InvalidInput("user_id is required")

    profile = _get_profile(target_id)
    profile.role = "admin"
    _commit()
    logger.warning("User %s promoted %s to admin", user_id, target_id)
    return jsonify({"success": True, "message": "User promoted to admin", "user": profile.to_dict()}), 200
