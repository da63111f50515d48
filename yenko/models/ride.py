"""Ride and Rating models"""
from sqlalchemy import (
    Column, String, Float, Boolean, Integer, Text, DateTime, ForeignKey, CheckConstraint, Index
)

from yenko.extensions import db
from .base import generate_uuid, utcnow, isoformat

RIDE_STATUSES = ("pending", "driver_assigned", "started", "completed", "cancelled")
ACTIVE_STATUSES = ("pending", "driver_assigned", "started")


# ---------------------------------------------------------------------------
# Ride
# ---------------------------------------------------------------------------
class Ride(db.Model):
    __tablename__ = "rides"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    passenger_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    driver_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    pickup = Column(db.JSON, nullable=False)  # {address, lat, lng}
    destination = Column(db.JSON, nullable=False)
    distance_km = Column(Float, nullable=True)
    ride_class = Column(String(20), nullable=False, default="basic")

    estimated_price = Column(Float, nullable=False)
    final_price = Column(Float, nullable=True)

    status = Column(String(20), nullable=False, default="pending")
    payment_confirmed = Column(Boolean, nullable=False, default=False)
    payment_confirmed_at = Column(DateTime, nullable=True)
    trip_code = Column(String(4), nullable=True)

    assigned_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancelled_by = Column(String(36), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'driver_assigned', 'started', 'completed', 'cancelled')",
            name="ck_ride_status",
        ),
        Index("idx_rides_driver_status", "driver_id", "status"),
    )

    def __repr__(self):
        return f"<Ride {self.id} ({self.status})>"

    def to_dict(self):
        return {
            "id": self.id,
            "passenger_id": self.passenger_id,
            "driver_id": self.driver_id,
            "pickup": self.pickup,
            "destination": self.destination,
            "distance_km": self.distance_km,
            "ride_class": self.ride_class,
            "estimated_price": self.estimated_price,
            "final_price": self.final_price,
            "status": self.status,
            "payment_confirmed": bool(self.payment_confirmed),
            "payment_confirmed_at": isoformat(self.payment_confirmed_at),
            "trip_code": self.trip_code,
            "assigned_at": isoformat(self.assigned_at),
            "started_at": isoformat(self.started_at),
            "ended_at": isoformat(self.ended_at),
            "cancelled_at": isoformat(self.cancelled_at),
            "cancelled_by": self.cancelled_by,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


# ---------------------------------------------------------------------------
# Rating
# ---------------------------------------------------------------------------
class Rating(db.Model):
    __tablename__ = "ratings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    ride_id = Column(String(36), ForeignKey("rides.id", ondelete="CASCADE"), nullable=False, unique=True)
    driver_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    passenger_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_rating_range"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "ride_id": self.ride_id,
            "driver_id": self.driver_id,
            "passenger_id": self.passenger_id,
            "rating": self.rating,
            "comment": self.comment,
            "created_at": isoformat(self.created_at),
        }
