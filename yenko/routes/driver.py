"""
Driver routes: vehicle profile, posted directions, ride handling and earnings.
"""
import logging

from flask import Blueprint, request, jsonify
from sqlalchemy import select

from yenko.errors import InvalidInput, NotFound, Conflict
from yenko.extensions import db
from yenko.models import Profile, Driver, DriverRoute
from yenko.security import require_driver
from yenko.services import TripService, get_earnings
from yenko.utils import parse_bool, parse_location, safe_int, safe_float

logger = logging.getLogger(__name__)

driver_bp = Blueprint('driver', __name__, url_prefix='/api/driver')

trip_service = TripService()

TEXT_FIELDS = ('car_make', 'car_model', 'car_year', 'car_color', 'plate_number')
FLAG_FIELDS = ('condition_ac', 'condition_quiet', 'condition_music', 'is_premium')


def _ride_id(data):
    ride_id = data.get('ride_id') or data.get('rideId')
    if not ride_id:
        raise InvalidInput('ride_id is required')
    return ride_id


@driver_bp.route('/profile', methods=['POST'])
@require_driver
def update_vehicle_profile(user_id):
    """
    Update vehicle details, seats and ride conditions.
    Body JSON: any of car_make, car_model, car_year, car_color, plate_number,
    seats, condition_ac, condition_quiet, condition_music, is_premium
    """
    data = request.get_json(silent=True) or {}
    driver = db.session.get(Driver, user_id)
    if driver is None:
        raise NotFound('Driver record not found')

    for field in TEXT_FIELDS:
        if field in data:
            value = str(data[field] or '').strip() or None
            if field == 'plate_number' and value:
                value = value.upper()
                taken = db.session.execute(
                    select(Driver.id).where(Driver.plate_number == value, Driver.id != user_id)
                ).first()
                if taken:
                    raise Conflict('A vehicle with this plate number is already registered', code='PLATE_TAKEN')
            setattr(driver, field, value)

    if 'seats' in data:
        seats = safe_int(data.get('seats'), default=-1)
        if seats < 1 or seats > 8:
            raise InvalidInput('Seats must be between 1 and 8')
        driver.seats = seats

    for field in FLAG_FIELDS:
        if field in data:
            setattr(driver, field, parse_bool(data[field]))

    for field, limit in (('current_lat', 90), ('current_lng', 180)):
        if field in data:
            value = safe_float(data[field], default=None)
            if value is not None and not -limit <= value <= limit:
                raise InvalidInput(f'{field} out of range')
            setattr(driver, field, value)

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return jsonify({'success': True, 'message': 'Profile updated', 'driver': driver.to_dict()}), 200


@driver_bp.route('/set-direction', methods=['POST'])
@require_driver
def set_direction(user_id):
    """Post the route the driver is about to travel."""
    data = request.get_json(silent=True) or {}
    start = parse_location(data.get('startLocation'))
    end = parse_location(data.get('endLocation'))
    if not start or not end:
        raise InvalidInput('Start and end locations are required')

    driver = db.session.get(Driver, user_id)
    if driver is None:
        raise NotFound('Driver record not found')

    seats = safe_int(data.get('seats'), default=driver.seats or 4)
    if seats < 1:
        raise InvalidInput('Seats must be at least 1')

    route = DriverRoute(
        driver_id=user_id,
        start_location=start,
        end_location=end,
        departure_time=data.get('departureTime'),
        seats=seats,
    )
    db.session.add(route)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info("Driver %s posted route %s", user_id, route.id)
    return jsonify({'success': True, 'message': 'Route posted', 'route': route.to_dict()}), 201


@driver_bp.route('/requests', methods=['GET'])
@require_driver
def incoming_requests(user_id):
    rides = trip_service.list_driver_requests(user_id)
    requests_out = []
    for ride in rides:
        item = ride.to_dict()
        passenger = db.session.get(Profile, ride.passenger_id) if ride.passenger_id else None
        item['passenger'] = (
            {'full_name': passenger.full_name, 'rating': passenger.rating} if passenger else None
        )
        requests_out.append(item)
    return jsonify({'success': True, 'requests': requests_out}), 200


@driver_bp.route('/accept', methods=['POST'])
@require_driver
def accept_ride(user_id):
    data = request.get_json(silent=True) or {}
    ride = trip_service.accept_ride(user_id, _ride_id(data))
    return jsonify({'success': True, 'message': 'Ride accepted', 'ride': ride.to_dict()}), 200


@driver_bp.route('/start', methods=['POST'])
@require_driver
def start_trip(user_id):
    data = request.get_json(silent=True) or {}
    ride = trip_service.start_trip(user_id, _ride_id(data))
    return jsonify({'success': True, 'message': 'Trip started', 'ride': ride.to_dict()}), 200


@driver_bp.route('/end', methods=['POST'])
@require_driver
def end_trip(user_id):
    data = request.get_json(silent=True) or {}
    ride = trip_service.end_trip(user_id, _ride_id(data), fare=data.get('fare'))
    return jsonify({
        'success': True,
        'message': 'Trip completed',
        'ride': ride.to_dict(),
        'tripCode': ride.trip_code,
    }), 200


@driver_bp.route('/cancel', methods=['POST'])
@require_driver
def cancel_ride(user_id):
    data = request.get_json(silent=True) or {}
    ride = trip_service.cancel_ride(user_id, _ride_id(data))
    return jsonify({'success': True, 'message': 'Ride cancelled', 'ride': ride.to_dict()}), 200


@driver_bp.route('/earnings', methods=['GET'])
@require_driver
def earnings(user_id):
    return jsonify({'success': True, **get_earnings(user_id)}), 200
