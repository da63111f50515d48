"""Account models: profiles plus the per-role driver and passenger records."""
from sqlalchemy import Column, String, Float, Boolean, Integer, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from yenko.extensions import db
from .base import generate_uuid, utcnow, isoformat


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------
class Profile(db.Model):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    phone = Column(String(20), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="passenger")
    profile_photo = Column(Text, nullable=True)
    rating = Column(Float, nullable=True)
    suspended = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    driver = relationship("Driver", back_populates="profile", uselist=False,
                          cascade="all, delete-orphan")
    passenger = relationship("Passenger", back_populates="profile", uselist=False,
                             cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Profile {self.phone} ({self.role})>"

    def to_public_dict(self):
        """The user view returned by every auth response."""
        return {
            "id": self.id,
            "phone": self.phone,
            "full_name": self.full_name,
            "role": self.role,
            "profile_photo": self.profile_photo,
            "rating": self.rating,
        }

    def to_dict(self):
        data = self.to_public_dict()
        data.update({
            "suspended": bool(self.suspended),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        })
        return data


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------
class Driver(db.Model):
    __tablename__ = "drivers"

    id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    car_make = Column(String(100), nullable=True)
    car_model = Column(String(100), nullable=True)
    car_year = Column(String(10), nullable=True)
    car_color = Column(String(50), nullable=True)
    plate_number = Column(String(30), unique=True, nullable=True, index=True)
    seats = Column(Integer, nullable=False, default=4)
    condition_ac = Column(Boolean, nullable=False, default=True)
    condition_quiet = Column(Boolean, nullable=False, default=False)
    condition_music = Column(Boolean, nullable=False, default=True)
    is_premium = Column(Boolean, nullable=False, default=False)
    verified = Column(Boolean, nullable=False, default=False)
    current_lat = Column(Float, nullable=True)
    current_lng = Column(Float, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    profile = relationship("Profile", back_populates="driver")
    routes = relationship("DriverRoute", back_populates="driver", lazy="dynamic",
                          cascade="all, delete-orphan")

    @property
    def car_description(self):
        parts = [self.car_make, self.car_model, self.car_year]
        return " ".join(p for p in parts if p) or None

    def to_dict(self):
        return {
            "id": self.id,
            "car_make": self.car_make,
            "car_model": self.car_model,
            "car_year": self.car_year,
            "car_color": self.car_color,
            "plate_number": self.plate_number,
            "seats": self.seats,
            "condition_ac": bool(self.condition_ac),
            "condition_quiet": bool(self.condition_quiet),
            "condition_music": bool(self.condition_music),
            "is_premium": bool(self.is_premium),
            "verified": bool(self.verified),
            "current_lat": self.current_lat,
            "current_lng": self.current_lng,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


# ---------------------------------------------------------------------------
# Passenger (marker record)
# ---------------------------------------------------------------------------
class Passenger(db.Model):
    __tablename__ = "passengers"

    id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=utcnow)

    profile = relationship("Profile", back_populates="passenger")


# ---------------------------------------------------------------------------
# DriverRoute - a direction posted by a driver
# ---------------------------------------------------------------------------
class DriverRoute(db.Model):
    __tablename__ = "driver_routes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    driver_id = Column(String(36), ForeignKey("drivers.id", ondelete="CASCADE"), nullable=False, index=True)
    start_location = Column(db.JSON, nullable=False)
    end_location = Column(db.JSON, nullable=False)
    departure_time = Column(String(40), nullable=True)
    seats = Column(Integer, nullable=False, default=4)
    created_at = Column(DateTime, default=utcnow)

    driver = relationship("Driver", back_populates="routes")

    def to_dict(self):
        return {
            "id": self.id,
            "driver_id": self.driver_id,
            "start_location": self.start_location,
            "end_location": self.end_location,
            "departure_time": self.departure_time,
            "seats": self.seats,
            "created_at": isoformat(self.created_at),
        }
