"""Driver earnings and rating aggregation"""
from datetime import timedelta

from sqlalchemy import select, func

from yenko.extensions import db
from yenko.models import Profile, Ride, Rating, utcnow
from yenko.utils import money


class RatingAggregator:
    """Average of a driver's Rating rows; also keeps Profile.rating in sync."""

    def summary(self, driver_id):
        average, count = db.session.execute(
            select(func.avg(Rating.rating), func.count(Rating.id)).where(Rating.driver_id == driver_id)
        ).one()
        return (round(float(average), 2) if count else None), int(count or 0)

    def average(self, driver_id):
        return self.summary(driver_id)[0]

    def refresh_profile_rating(self, driver_id):
        profile = db.session.get(Profile, driver_id)
        if profile is None:
            return None
        profile.rating = self.average(driver_id)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return profile.rating


def _sum_completed(driver_id, since=None):
    query = select(func.coalesce(func.sum(Ride.final_price), 0.0)).where(
        Ride.driver_id == driver_id, Ride.status == "completed"
    )
    if since is not None:
        query = query.where(Ride.ended_at >= since)
    return money(db.session.execute(query).scalar())


def get_earnings(driver_id, now=None):
    """
    Earnings for a driver over completed rides.

    Args:
        driver_id (str): Driver profile id
        now (datetime): Reference time, naive UTC (defaults to now)

    Returns:
        dict: total, thisWeek, thisMonth, trips, rating, ratingCount
    """
    now = now or utcnow()
    trips = db.session.execute(
        select(func.count(Ride.id)).where(Ride.driver_id == driver_id, Ride.status == "completed")
    ).scalar() or 0
    rating, rating_count = RatingAggregator().summary(driver_id)

    return {
        "total": _sum_completed(driver_id),
        "thisWeek": _sum_completed(driver_id, now - timedelta(days=7)),
        "thisMonth": _sum_completed(driver_id, now - timedelta(days=30)),
        "trips": int(trips),
        "rating": rating,
        "ratingCount": rating_count,
    }
