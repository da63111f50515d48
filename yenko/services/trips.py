"""
Trip lifecycle: pending -> driver_assigned -> started -> completed, with
cancellation from pending / driver_assigned (and from started for admins).

Every transition is one conditional UPDATE scoped by ride id, actor and the
allowed source statuses. When it touches no row the ride is re-read to tell
apart "missing", "not yours", "already done" and "not allowed".
"""
import logging

from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError

from yenko.errors import InvalidInput, NotFound, Forbidden, Conflict, InvalidTransition
from yenko.extensions import db
from yenko.models import Profile, Ride, Rating, utcnow
from yenko.services.earnings import RatingAggregator
from yenko.services.pricing import get_distance_provider, compute_price, parse_ride_class
from yenko.utils import parse_location, money, generate_trip_code

logger = logging.getLogger(__name__)

FORWARD_PATH = ("pending", "driver_assigned", "started", "completed")


def _at_or_past(status, target):
    """True when ``status`` already reached ``target`` on the forward path."""
    if status == target:
        return True
    if status in FORWARD_PATH and target in FORWARD_PATH:
        return FORWARD_PATH.index(status) >= FORWARD_PATH.index(target)
    return False


def _positive_number(value, field):
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a positive number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a positive number")
    if number <= 0:
        raise InvalidInput(f"{field} must be a positive number")
    return money(number)


class TripService:
    """Service for ride requests and the trip state machine"""

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def request_ride(self, passenger_id, driver_id, pickup, destination, price=None, ride_class=None):
        if not driver_id:
            raise InvalidInput("Driver is required")
        pickup_loc = parse_location(pickup)
        destination_loc = parse_location(destination)
        if not pickup_loc or not destination_loc:
            raise InvalidInput("Pickup and destination are required")
        ride_class = parse_ride_class(ride_class)

        driver = db.session.get(Profile, driver_id)
        if driver is None or driver.role != "driver" or driver.suspended or driver.driver is None:
            raise NotFound("Driver not found")

        distance = get_distance_provider().distance_km(pickup_loc, destination_loc)
        if price is None or price == "":
            estimated_price = compute_price(distance, ride_class)
        else:
            estimated_price = _positive_number(price, "Price")

        ride = Ride(
            passenger_id=passenger_id,
            driver_id=driver_id,
            pickup=pickup_loc,
            destination=destination_loc,
            distance_km=distance,
            ride_class=ride_class,
            estimated_price=estimated_price,
            status="pending",
        )
        db.session.add(ride)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info("Ride %s requested by %s for driver %s", ride.id, passenger_id, driver_id)
        return ride

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def accept_ride(self, driver_id, ride_id):
        return self._transition(
            ride_id, driver_id,
            actor_clause=Ride.driver_id == driver_id,
            sources=("pending",),
            target="driver_assigned",
            values={"assigned_at": utcnow()},
        )

    def start_trip(self, driver_id, ride_id):
        return self._transition(
            ride_id, driver_id,
            actor_clause=Ride.driver_id == driver_id,
            sources=("driver_assigned",),
            target="started",
            values={"started_at": utcnow()},
        )

    def end_trip(self, driver_id, ride_id, fare=None):
        if fare is None or fare == "":
            final_price = Ride.estimated_price
        else:
            final_price = _positive_number(fare, "Fare")
        return self._transition(
            ride_id, driver_id,
            actor_clause=Ride.driver_id == driver_id,
            sources=("started",),
            target="completed",
            values={
                "ended_at": utcnow(),
                "final_price": final_price,
                "trip_code": generate_trip_code(),
            },
        )

    def cancel_ride(self, actor_id, ride_id, is_admin=False):
        if is_admin:
            actor_clause = True
            sources = ("pending", "driver_assigned", "started")
        else:
            actor_clause = or_(Ride.passenger_id == actor_id, Ride.driver_id == actor_id)
            sources = ("pending", "driver_assigned")
        return self._transition(
            ride_id, actor_id,
            actor_clause=actor_clause,
            sources=sources,
            target="cancelled",
            values={"cancelled_at": utcnow(), "cancelled_by": actor_id},
            is_admin=is_admin,
        )

    def _transition(self, ride_id, actor_id, actor_clause, sources, target, values, is_admin=False):
        values = dict(values, status=target, updated_at=utcnow())
        stmt = (
            update(Ride)
            .where(Ride.id == ride_id, Ride.status.in_(sources))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if actor_clause is not True:
            stmt = stmt.where(actor_clause)

        try:
            result = db.session.execute(stmt)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        ride = db.session.get(Ride, ride_id, populate_existing=True)
        if result.rowcount == 1:
            logger.info("Ride %s -> %s by %s", ride_id, target, actor_id)
            return ride

        if ride is None:
            raise NotFound("Ride not found")
        if not is_admin and actor_id not in (ride.passenger_id, ride.driver_id):
            raise Forbidden("Not your ride")
        if target != "cancelled" and ride.driver_id != actor_id:
            raise Forbidden("Not your ride")
        if _at_or_past(ride.status, target):
            return ride
        raise InvalidTransition(f"Cannot move ride from {ride.status} to {target}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_ride(self, actor_id, ride_id):
        ride = db.session.get(Ride, ride_id)
        if ride is None or actor_id not in (ride.passenger_id, ride.driver_id):
            raise NotFound("Ride not found")
        return ride

    def list_passenger_rides(self, passenger_id):
        return db.session.execute(
            select(Ride).where(Ride.passenger_id == passenger_id).order_by(Ride.created_at.desc())
        ).scalars().all()

    def list_driver_requests(self, driver_id):
        return db.session.execute(
            select(Ride)
            .where(Ride.driver_id == driver_id, Ride.status.in_(("pending", "driver_assigned")))
            .order_by(Ride.created_at.asc())
        ).scalars().all()

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------
    def rate_ride(self, passenger_id, ride_id, rating, comment=None):
        if isinstance(rating, bool) or not isinstance(rating, (int, float, str)):
            raise InvalidInput("Rating must be a whole number from 1 to 5")
        try:
            value = int(str(rating).strip())
        except ValueError:
            raise InvalidInput("Rating must be a whole number from 1 to 5")
        if not 1 <= value <= 5:
            raise InvalidInput("Rating must be a whole number from 1 to 5")

        ride = db.session.get(Ride, ride_id)
        if ride is None or ride.passenger_id != passenger_id:
            raise NotFound("Ride not found")
        if ride.status != "completed":
            raise InvalidTransition("Only completed rides can be rated")

        existing = db.session.execute(select(Rating.id).where(Rating.ride_id == ride_id)).first()
        if existing:
            raise Conflict("Ride already rated", code="ALREADY_RATED")

        entry = Rating(
            ride_id=ride.id,
            driver_id=ride.driver_id,
            passenger_id=passenger_id,
            rating=value,
            comment=(comment or "").strip() or None,
        )
        db.session.add(entry)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Conflict("Ride already rated", code="ALREADY_RATED")

        if ride.driver_id:
            RatingAggregator().refresh_profile_rating(ride.driver_id)
        return entry
