"""Payment and waitlist models"""
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, CheckConstraint

from yenko.extensions import db
from .base import generate_uuid, utcnow, isoformat


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
class Payment(db.Model):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    passenger_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    driver_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    ride_id = Column(String(36), ForeignKey("rides.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Float, nullable=False)  # cedis
    provider = Column(String(20), nullable=False, default="paystack")
    reference = Column(String(100), unique=True, nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, default=utcnow)
    paid_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'paid')", name="ck_payment_status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "passenger_id": self.passenger_id,
            "driver_id": self.driver_id,
            "ride_id": self.ride_id,
            "amount": self.amount,
            "provider": self.provider,
            "reference": self.reference,
            "status": self.status,
            "created_at": isoformat(self.created_at),
            "paid_at": isoformat(self.paid_at),
        }


# ---------------------------------------------------------------------------
# WaitlistEntry
# ---------------------------------------------------------------------------
class WaitlistEntry(db.Model):
    __tablename__ = "waitlist"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), unique=True, nullable=False)
    email = Column(String(255), nullable=True)
    area = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "area": self.area,
            "role": self.role,
            "created_at": isoformat(self.created_at),
        }
