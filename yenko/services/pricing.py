"""
Fare estimation and driver search.

Distances come from a pluggable ``DistanceProvider``; the default uses the
great-circle distance when both endpoints carry coordinates and a fixed
stand-in distance otherwise.
"""
import logging
import math

from flask import current_app
from sqlalchemy import select, func

from yenko.errors import InvalidInput
from yenko.extensions import db
from yenko.models import Profile, Driver, DriverRoute, Ride, ACTIVE_STATUSES
from yenko.utils import money, parse_location

logger = logging.getLogger(__name__)

RIDE_CLASSES = ("basic", "premium")
EARTH_RADIUS_KM = 6371.0


def parse_ride_class(value, default="basic"):
    """Parse BASIC / PREMIUM case-insensitively."""
    if value is None or value == "":
        return default
    ride_class = str(value).strip().lower()
    if ride_class not in RIDE_CLASSES:
        raise InvalidInput("Ride class must be BASIC or PREMIUM")
    return ride_class


def haversine_km(lat1, lng1, lat2, lng2):
    """Great-circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def _has_coordinates(location):
    return bool(location) and location.get("lat") is not None and location.get("lng") is not None


# ---------------------------------------------------------------------------
# Distance providers
# ---------------------------------------------------------------------------
class DistanceProvider:
    """Interface: distance in km and duration in minutes between two locations."""

    def distance_km(self, origin, destination):
        raise NotImplementedError

    def duration_minutes(self, distance_km):
        speed = current_app.config.get("AVERAGE_SPEED_KMH", 27.0)
        return int(math.ceil(distance_km / speed * 60)) if distance_km > 0 else 0


class HaversineDistanceProvider(DistanceProvider):

    def __init__(self, default_km=None):
        self._default_km = default_km

    def distance_km(self, origin, destination):
        if _has_coordinates(origin) and _has_coordinates(destination):
            return round(haversine_km(origin["lat"], origin["lng"], destination["lat"], destination["lng"]), 2)
        if self._default_km is not None:
            return self._default_km
        return current_app.config.get("DEFAULT_DISTANCE_KM", 20.0)


class FixedDistanceProvider(DistanceProvider):
    """Always returns the same distance. Handy in tests."""

    def __init__(self, km):
        self._km = km

    def distance_km(self, origin, destination):
        return self._km


def get_distance_provider():
    provider = current_app.extensions.get("distance_provider")
    if provider is None:
        provider = HaversineDistanceProvider()
        current_app.extensions["distance_provider"] = provider
    return provider


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------
def per_km_rate(ride_class):
    cfg = current_app.config
    return cfg["PER_KM_PREMIUM"] if ride_class == "premium" else cfg["PER_KM_BASIC"]


def compute_price(distance_km, ride_class="basic"):
    return money(current_app.config["BASE_FARE"] + per_km_rate(ride_class) * distance_km)


def price_breakdown(distance_km, ride_class="basic"):
    cfg = current_app.config
    price = compute_price(distance_km, ride_class)
    platform_fee = money(price * cfg["PLATFORM_COMMISSION"])
    return {
        "baseFare": cfg["BASE_FARE"],
        "perKm": per_km_rate(ride_class),
        "distanceKm": distance_km,
        "estimatedPrice": price,
        "platformFee": platform_fee,
        "driverPayout": money(price - platform_fee),
    }


def _require_locations(pickup, destination):
    pickup_loc = parse_location(pickup)
    destination_loc = parse_location(destination)
    if not pickup_loc or not destination_loc:
        raise InvalidInput("Pickup and destination are required")
    return pickup_loc, destination_loc


def estimate_trip(pickup, destination, ride_class=None):
    pickup_loc, destination_loc = _require_locations(pickup, destination)
    ride_class = parse_ride_class(ride_class)
    provider = get_distance_provider()
    distance = provider.distance_km(pickup_loc, destination_loc)

    estimate = price_breakdown(distance, ride_class)
    estimate["durationMinutes"] = provider.duration_minutes(distance)
    estimate["rideClass"] = ride_class
    return estimate


def calculate_route(pickup, destination):
    pickup_loc, destination_loc = _require_locations(pickup, destination)
    provider = get_distance_provider()
    distance = provider.distance_km(pickup_loc, destination_loc)
    return {"distance": distance, "duration": provider.duration_minutes(distance)}


# ---------------------------------------------------------------------------
# Driver search
# ---------------------------------------------------------------------------
def _seats_held():
    """Seats held per driver by rides that are still in progress."""
    rows = db.session.execute(
        select(Ride.driver_id, func.count(Ride.id))
        .where(Ride.status.in_(ACTIVE_STATUSES), Ride.driver_id.isnot(None))
        .group_by(Ride.driver_id)
    ).all()
    return {driver_id: count for driver_id, count in rows}


def _latest_route_seats(driver_id):
    return db.session.execute(
        select(DriverRoute.seats)
        .where(DriverRoute.driver_id == driver_id)
        .order_by(DriverRoute.created_at.desc())
        .limit(1)
    ).scalar_one_or_none()


def _pickup_eta(driver, pickup_loc, provider):
    if driver.current_lat is not None and driver.current_lng is not None and _has_coordinates(pickup_loc):
        km = haversine_km(driver.current_lat, driver.current_lng, pickup_loc["lat"], pickup_loc["lng"])
        return max(provider.duration_minutes(km), 1)
    return current_app.config.get("DEFAULT_PICKUP_ETA_MINUTES", 10)


def search_drivers(pickup, destination, ride_class=None):
    """Available drivers for a trip, ordered by pickup ETA then driver id."""
    pickup_loc, destination_loc = _require_locations(pickup, destination)
    ride_class = parse_ride_class(ride_class)
    provider = get_distance_provider()
    distance = provider.distance_km(pickup_loc, destination_loc)
    breakdown = price_breakdown(distance, ride_class)

    query = (
        select(Driver, Profile)
        .join(Profile, Profile.id == Driver.id)
        .where(
            Profile.role == "driver",
            Profile.suspended.is_(False),
            Driver.car_make.isnot(None),
            Driver.plate_number.isnot(None),
        )
    )
    if ride_class == "premium":
        query = query.where(Driver.is_premium.is_(True))

    held = _seats_held()
    results = []
    for driver, profile in db.session.execute(query).all():
        capacity = _latest_route_seats(driver.id) or driver.seats or 0
        available = capacity - held.get(driver.id, 0)
        if available <= 0:
            continue
        results.append({
            "driverId": driver.id,
            "name": profile.full_name,
            "carModel": driver.car_description,
            "carColor": driver.car_color,
            "plate": driver.plate_number,
            "seatsAvailable": available,
            "conditions": {
                "ac": bool(driver.condition_ac),
                "quiet": bool(driver.condition_quiet),
                "music": bool(driver.condition_music),
            },
            "isPremium": bool(driver.is_premium),
            "verified": bool(driver.verified),
            "rating": profile.rating,
            "computedPrice": breakdown["estimatedPrice"],
            "priceBreakdown": breakdown,
            "etaToPickupMinutes": _pickup_eta(driver, pickup_loc, provider),
        })

    results.sort(key=lambda r: (r["etaToPickupMinutes"], r["driverId"]))
    return results
