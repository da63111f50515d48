"""Business logic, kept out of the route handlers"""
from .auth import AuthService
from .onboarding import OnboardingStatus, resolve
from .trips import TripService
from .earnings import RatingAggregator, get_earnings
from .analytics import platform_analytics, recent_activity
from .pricing import (
    DistanceProvider, HaversineDistanceProvider, FixedDistanceProvider,
    estimate_trip, search_drivers, calculate_route, parse_ride_class,
)
from .payments import (
    PaymentGateway, MockPaymentGateway, PaystackGateway, build_gateway,
    initialize_payment, verify_signature, confirm_payment,
)

__all__ = [
    'AuthService',
    'OnboardingStatus',
    'resolve',
    'TripService',
    'RatingAggregator',
    'get_earnings',
    'platform_analytics',
    'recent_activity',
    'DistanceProvider',
    'HaversineDistanceProvider',
    'FixedDistanceProvider',
    'estimate_trip',
    'search_drivers',
    'calculate_route',
    'parse_ride_class',
    'PaymentGateway',
    'MockPaymentGateway',
    'PaystackGateway',
    'build_gateway',
    'initialize_payment',
    'verify_signature',
    'confirm_payment',
]
