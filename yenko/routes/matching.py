"""
Matching routes: driver search and route calculation.
"""
from flask import Blueprint, request, jsonify

from yenko.services import search_drivers, calculate_route

matching_bp = Blueprint('matching', __name__, url_prefix='/api/matching')


@matching_bp.route('/find-drivers', methods=['POST'])
def find_drivers():
    data = request.get_json(silent=True) or {}
    drivers = search_drivers(
        data.get('pickup'),
        data.get('destination'),
        data.get('rideType') or data.get('ride_class'),
    )
    return jsonify({'success': True, 'drivers': drivers}), 200


@matching_bp.route('/calculate-route', methods=['POST'])
def route():
    data = request.get_json(silent=True) or {}
    result = calculate_route(data.get('pickup'), data.get('destination'))
    return jsonify({'success': True, **result}), 200
