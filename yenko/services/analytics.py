"""
Platform analytics for the admin dashboard. Read-only.
"""
from datetime import datetime, timedelta

from sqlalchemy import select, func

from yenko.extensions import db
from yenko.models import Profile, Driver, Ride, RIDE_STATUSES, utcnow
from yenko.utils import money


def _count(query):
    return int(db.session.execute(query).scalar() or 0)


def _last_7_days(now):
    today = now.date()
    first_day = today - timedelta(days=6)
    buckets = {
        first_day + timedelta(days=offset): {"revenue": 0.0, "rides": 0}
        for offset in range(7)
    }

    rows = db.session.execute(
        select(Ride.ended_at, Ride.final_price).where(
            Ride.status == "completed",
            Ride.ended_at >= datetime.combine(first_day, datetime.min.time()),
        )
    ).all()
    for ended_at, final_price in rows:
        bucket = buckets.get(ended_at.date())
        if bucket is None:
            continue
        bucket["rides"] += 1
        bucket["revenue"] += final_price or 0.0

    return [
        {"date": day.isoformat(), "revenue": money(values["revenue"]), "rides": values["rides"]}
        for day, values in sorted(buckets.items())
    ]


def platform_analytics(now=None):
    """Counts, revenue and a 7-day series. Zeros on an empty database."""
    now = now or utcnow()

    status_counts = dict(
        db.session.execute(select(Ride.status, func.count(Ride.id)).group_by(Ride.status)).all()
    )
    rides_by_status = {status: int(status_counts.get(status, 0)) for status in RIDE_STATUSES}
    total_rides = sum(rides_by_status.values())
    completed = rides_by_status["completed"]

    revenue, average = db.session.execute(
        select(func.coalesce(func.sum(Ride.final_price), 0.0), func.avg(Ride.final_price))
        .where(Ride.status == "completed")
    ).one()

    return {
        "totalUsers": _count(select(func.count(Profile.id))),
        "totalDrivers": _count(select(func.count(Profile.id)).where(Profile.role == "driver")),
        "verifiedDrivers": _count(select(func.count(Driver.id)).where(Driver.verified.is_(True))),
        "premiumDrivers": _count(select(func.count(Driver.id)).where(Driver.is_premium.is_(True))),
        "totalRides": total_rides,
        "ridesByStatus": rides_by_status,
        "completedRides": completed,
        "pendingRides": rides_by_status["pending"],
        "cancelledRides": rides_by_status["cancelled"],
        "totalRevenue": money(revenue),
        "averageRidePrice": money(average) if average is not None else 0.0,
        "completionRate": round(completed / total_rides * 100, 1) if total_rides else 0.0,
        "last7Days": _last_7_days(now),
    }


def recent_activity(ride_limit=10, user_limit=5):
    rides = db.session.execute(
        select(Ride).order_by(Ride.created_at.desc()).limit(ride_limit)
    ).scalars().all()
    users = db.session.execute(
        select(Profile).order_by(Profile.created_at.desc()).limit(user_limit)
    ).scalars().all()
    return {
        "recentRides": [ride.to_dict() for ride in rides],
        "recentUsers": [user.to_dict() for user in users],
    }
