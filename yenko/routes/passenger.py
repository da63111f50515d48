"""
Passenger routes: driver search, fare estimates and ride requests.
"""
from flask import Blueprint, request, jsonify

from yenko.security import require_auth, require_passenger
from yenko.services import TripService, estimate_trip, search_drivers

passenger_bp = Blueprint('passenger', __name__, url_prefix='/api/passenger')

trip_service = TripService()


def _ride_class(data):
    return data.get('rideType') or data.get('ride_class')


@passenger_bp.route('/drivers', methods=['GET'])
def list_drivers():
    """Drivers available for a pickup/destination pair (query string)."""
    args = request.args
    drivers = search_drivers(args.get('pickup'), args.get('destination'), _ride_class(args))
    return jsonify({'success': True, 'drivers': drivers}), 200


@passenger_bp.route('/trip/estimate', methods=['POST'])
def estimate():
    data = request.get_json(silent=True) or {}
    result = estimate_trip(data.get('pickup'), data.get('destination'), _ride_class(data))
    return jsonify({'success': True, 'estimate': result}), 200


@passenger_bp.route('/trip/request', methods=['POST'])
@require_passenger
def request_ride(user_id):
    data = request.get_json(silent=True) or {}
    ride = trip_service.request_ride(
        passenger_id=user_id,
        driver_id=data.get('driverId') or data.get('driver_id'),
        pickup=data.get('pickup'),
        destination=data.get('destination'),
        price=data.get('price'),
        ride_class=_ride_class(data),
    )
    return jsonify({'success': True, 'message': 'Ride requested', 'ride': ride.to_dict()}), 201


@passenger_bp.route('/trips', methods=['GET'])
@require_passenger
def list_trips(user_id):
    rides = trip_service.list_passenger_rides(user_id)
    return jsonify({'success': True, 'trips': [r.to_dict() for r in rides]}), 200


@passenger_bp.route('/trip/<ride_id>', methods=['GET'])
@require_auth
def get_trip(user_id, ride_id):
    """Trip detail for the ride's passenger or driver."""
    ride = trip_service.get_ride(user_id, ride_id)
    return jsonify({'success': True, 'trip': ride.to_dict()}), 200


@passenger_bp.route('/trip/<ride_id>/cancel', methods=['POST'])
@require_passenger
def cancel_trip(user_id, ride_id):
    ride = trip_service.cancel_ride(user_id, ride_id)
    return jsonify({'success': True, 'message': 'Ride cancelled', 'ride': ride.to_dict()}), 200


@passenger_bp.route('/trip/<ride_id>/rate', methods=['POST'])
@require_passenger
def rate_trip(user_id, ride_id):
    data = request.get_json(silent=True) or {}
    rating = trip_service.rate_ride(user_id, ride_id, data.get('rating'), data.get('comment'))
    return jsonify({'success': True, 'message': 'Rating submitted', 'rating': rating.to_dict()}), 201
