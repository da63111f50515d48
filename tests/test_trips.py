"""
Trip lifecycle tests
Tests ride requests, the status graph, idempotent retries and ratings
"""
import json

import pytest

from yenko.errors import InvalidTransition, Forbidden, NotFound
from yenko.models import Ride, Profile
from yenko.services import TripService


@pytest.fixture
def trips():
    return TripService()


class TestRequestRide:
    """POST /api/passenger/trip/request"""

    def test_request_ride_computes_price(self, client, driver, passenger_headers):
        response = client.post('/api/passenger/trip/request', json={
            'driverId': driver.id,
            'pickup': 'Madina',
            'destination': 'Accra Mall',
        }, headers=passenger_headers)

        assert response.status_code == 201
        ride = json.loads(response.data)['ride']
        assert ride['status'] == 'pending'
        assert ride['distance_km'] == 20.0
        assert ride['estimated_price'] == 27.0
        assert ride['pickup'] == {'address': 'Madina', 'lat': None, 'lng': None}

    def test_request_ride_with_price(self, client, driver, passenger_headers):
        response = client.post('/api/passenger/trip/request', json={
            'driverId': driver.id, 'pickup': 'Madina', 'destination': 'Legon', 'price': 35.5,
        }, headers=passenger_headers)
        assert json.loads(response.data)['ride']['estimated_price'] == 35.5

    @pytest.mark.parametrize('price', [0, -5, 'abc', True])
    def test_request_ride_bad_price(self, client, driver, passenger_headers, price):
        response = client.post('/api/passenger/trip/request', json={
            'driverId': driver.id, 'pickup': 'Madina', 'destination': 'Legon', 'price': price,
        }, headers=passenger_headers)
        assert response.status_code == 400

    def test_request_ride_missing_locations(self, client, driver, passenger_headers):
        response = client.post('/api/passenger/trip/request',
            json={'driverId': driver.id, 'pickup': 'Madina'}, headers=passenger_headers)
        assert response.status_code == 400

    def test_request_ride_unknown_driver(self, client, passenger, passenger_headers):
        response = client.post('/api/passenger/trip/request', json={
            'driverId': passenger.id, 'pickup': 'Madina', 'destination': 'Legon',
        }, headers=passenger_headers)
        assert response.status_code == 404

    def test_request_ride_suspended_driver(self, client, driver_factory, passenger_headers):
        suspended = driver_factory(suspended=True)
        response = client.post('/api/passenger/trip/request', json={
            'driverId': suspended.id, 'pickup': 'Madina', 'destination': 'Legon',
        }, headers=passenger_headers)
        assert response.status_code == 404

    def test_drivers_cannot_request(self, client, driver, driver_headers):
        response = client.post('/api/passenger/trip/request', json={
            'driverId': driver.id, 'pickup': 'Madina', 'destination': 'Legon',
        }, headers=driver_headers)
        assert response.status_code == 403


class TestTransitions:
    """Service-level state machine"""

    def test_happy_path(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver)

        ride = trips.accept_ride(driver.id, ride.id)
        assert ride.status == 'driver_assigned'
        assert ride.assigned_at is not None

        ride = trips.start_trip(driver.id, ride.id)
        assert ride.status == 'started'
        assert ride.started_at is not None

        ride = trips.end_trip(driver.id, ride.id)
        assert ride.status == 'completed'
        assert ride.final_price == ride.estimated_price
        assert len(ride.trip_code) == 4
        assert ride.trip_code.isalnum() and ride.trip_code == ride.trip_code.upper()

    def test_end_trip_with_fare(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver, status='started')
        ride = trips.end_trip(driver.id, ride.id, fare=31.5)
        assert ride.final_price == 31.5

    def test_retries_are_idempotent(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver, status='completed', trip_code='ZZ99')

        assert trips.accept_ride(driver.id, ride.id).status == 'completed'
        assert trips.start_trip(driver.id, ride.id).status == 'completed'
        again = trips.end_trip(driver.id, ride.id, fare=99)
        assert again.trip_code == 'ZZ99'
        assert again.final_price == 27.0

    def test_start_from_pending_fails(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver)
        with pytest.raises(InvalidTransition):
            trips.start_trip(driver.id, ride.id)

    def test_end_from_assigned_fails(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver, status='driver_assigned')
        with pytest.raises(InvalidTransition):
            trips.end_trip(driver.id, ride.id)

    def test_cancelled_is_terminal(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver, status='cancelled')
        with pytest.raises(InvalidTransition):
            trips.accept_ride(driver.id, ride.id)

    def test_other_driver_forbidden(self, trips, passenger, driver, driver_factory, ride_factory):
        other = driver_factory()
        ride = ride_factory(passenger, driver)
        with pytest.raises(Forbidden):
            trips.accept_ride(other.id, ride.id)
        assert trips.get_ride(driver.id, ride.id).status == 'pending'

    def test_passenger_cannot_accept(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver)
        with pytest.raises(Forbidden):
            trips.accept_ride(passenger.id, ride.id)

    def test_missing_ride(self, trips, driver):
        with pytest.raises(NotFound):
            trips.accept_ride(driver.id, 'no-such-ride')

    def test_cancel_by_passenger(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver, status='driver_assigned')
        ride = trips.cancel_ride(passenger.id, ride.id)
        assert ride.status == 'cancelled'
        assert ride.cancelled_by == passenger.id
        assert ride.cancelled_at is not None
        # second cancel is a no-op
        assert trips.cancel_ride(driver.id, ride.id).cancelled_by == passenger.id

    def test_cancel_started_ride_fails(self, trips, passenger, driver, ride_factory):
        ride = ride_factory(passenger, driver, status='started')
        with pytest.raises(InvalidTransition):
            trips.cancel_ride(passenger.id, ride.id)

    def test_admin_can_cancel_started_ride(self, trips, passenger, driver, admin, ride_factory):
        ride = ride_factory(passenger, driver, status='started')
        ride = trips.cancel_ride(admin.id, ride.id, is_admin=True)
        assert ride.status == 'cancelled'

    def test_admin_cannot_cancel_completed_ride(self, trips, passenger, driver, admin, ride_factory):
        ride = ride_factory(passenger, driver, status='completed')
        with pytest.raises(InvalidTransition):
            trips.cancel_ride(admin.id, ride.id, is_admin=True)

    def test_stranger_cannot_cancel(self, trips, passenger, driver, profile_factory, ride_factory):
        stranger = profile_factory()
        ride = ride_factory(passenger, driver)
        with pytest.raises(Forbidden):
            trips.cancel_ride(stranger.id, ride.id)


class TestDriverRoutes:
    """Driver endpoints over HTTP"""

    def test_accept_start_end(self, client, passenger, driver, driver_headers, ride_factory):
        ride = ride_factory(passenger, driver)

        for path, status in (('accept', 'driver_assigned'), ('start', 'started'), ('end', 'completed')):
            response = client.post(f'/api/driver/{path}', json={'ride_id': ride.id}, headers=driver_headers)
            assert response.status_code == 200
            assert json.loads(response.data)['ride']['status'] == status

        response = client.post('/api/driver/end', json={'ride_id': ride.id}, headers=driver_headers)
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['tripCode'] == data['ride']['trip_code']

    def test_invalid_transition_status_code(self, client, passenger, driver, driver_headers, ride_factory):
        ride = ride_factory(passenger, driver)
        response = client.post('/api/driver/start', json={'ride_id': ride.id}, headers=driver_headers)
        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'INVALID_TRANSITION'

    def test_ride_id_required(self, client, driver_headers):
        response = client.post('/api/driver/accept', json={}, headers=driver_headers)
        assert response.status_code == 400

    def test_requests_list(self, client, passenger, driver, driver_headers, ride_factory):
        pending = ride_factory(passenger, driver)
        assigned = ride_factory(passenger, driver, status='driver_assigned')
        ride_factory(passenger, driver, status='completed')

        response = client.get('/api/driver/requests', headers=driver_headers)
        data = json.loads(response.data)
        assert {r['id'] for r in data['requests']} == {pending.id, assigned.id}
        assert data['requests'][0]['passenger']['full_name'] == 'Ama Mensah'

    def test_driver_cancel(self, client, passenger, driver, driver_headers, ride_factory):
        ride = ride_factory(passenger, driver)
        response = client.post('/api/driver/cancel', json={'ride_id': ride.id}, headers=driver_headers)
        assert json.loads(response.data)['ride']['cancelled_by'] == driver.id

    def test_set_direction(self, client, driver, driver_headers):
        response = client.post('/api/driver/set-direction', json={
            'startLocation': 'Madina', 'endLocation': 'Circle', 'departureTime': '07:30', 'seats': 3,
        }, headers=driver_headers)
        assert response.status_code == 201
        route = json.loads(response.data)['route']
        assert route['start_location']['address'] == 'Madina'
        assert route['seats'] == 3

    def test_update_vehicle_profile(self, client, driver, driver_headers):
        response = client.post('/api/driver/profile', json={
            'seats': 3, 'condition_quiet': 'true', 'is_premium': True,
        }, headers=driver_headers)
        data = json.loads(response.data)['driver']
        assert data['seats'] == 3
        assert data['condition_quiet'] is True
        assert data['is_premium'] is True

    def test_passengers_cannot_use_driver_routes(self, client, passenger_headers):
        response = client.get('/api/driver/requests', headers=passenger_headers)
        assert response.status_code == 403


class TestPassengerTrips:
    """Trip detail, history, cancellation and rating"""

    def test_trip_visible_to_both_parties(self, client, passenger, driver, ride_factory,
                                          passenger_headers, driver_headers):
        ride = ride_factory(passenger, driver)
        for headers in (passenger_headers, driver_headers):
            response = client.get(f'/api/passenger/trip/{ride.id}', headers=headers)
            assert response.status_code == 200
            assert json.loads(response.data)['trip']['id'] == ride.id

    def test_trip_hidden_from_others(self, client, passenger, driver, ride_factory, profile_factory, auth_headers):
        ride = ride_factory(passenger, driver)
        response = client.get(f'/api/passenger/trip/{ride.id}', headers=auth_headers(profile_factory()))
        assert response.status_code == 404

    def test_trip_history(self, client, passenger, driver, ride_factory, passenger_headers):
        ride_factory(passenger, driver)
        ride_factory(passenger, driver, status='completed')
        response = client.get('/api/passenger/trips', headers=passenger_headers)
        assert len(json.loads(response.data)['trips']) == 2

    def test_passenger_cancel(self, client, passenger, driver, ride_factory, passenger_headers):
        ride = ride_factory(passenger, driver)
        response = client.post(f'/api/passenger/trip/{ride.id}/cancel', headers=passenger_headers)
        assert json.loads(response.data)['ride']['status'] == 'cancelled'

    def test_rate_completed_ride(self, client, passenger, driver, ride_factory, passenger_headers, fresh):
        ride = ride_factory(passenger, driver, status='completed')
        response = client.post(f'/api/passenger/trip/{ride.id}/rate',
            json={'rating': 4, 'comment': 'Smooth ride'}, headers=passenger_headers)
        assert response.status_code == 201
        assert fresh(Profile, driver.id).rating == 4.0

    def test_rate_twice_rejected(self, client, passenger, driver, ride_factory, passenger_headers):
        ride = ride_factory(passenger, driver, status='completed')
        client.post(f'/api/passenger/trip/{ride.id}/rate', json={'rating': 5}, headers=passenger_headers)
        response = client.post(f'/api/passenger/trip/{ride.id}/rate', json={'rating': 3}, headers=passenger_headers)
        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'ALREADY_RATED'

    def test_rate_unfinished_ride(self, client, passenger, driver, ride_factory, passenger_headers):
        ride = ride_factory(passenger, driver, status='started')
        response = client.post(f'/api/passenger/trip/{ride.id}/rate', json={'rating': 5}, headers=passenger_headers)
        assert json.loads(response.data)['code'] == 'INVALID_TRANSITION'

    @pytest.mark.parametrize('rating', [0, 6, 4.5, 'great', None])
    def test_rate_out_of_range(self, client, passenger, driver, ride_factory, passenger_headers, rating):
        ride = ride_factory(passenger, driver, status='completed')
        response = client.post(f'/api/passenger/trip/{ride.id}/rate',
            json={'rating': rating}, headers=passenger_headers)
        assert response.status_code == 400
        assert json.loads(response.data)['code'] == 'INVALID_INPUT'

    def test_ride_row_unchanged_after_failed_transition(self, client, passenger, driver, ride_factory,
                                                        driver_headers, fresh):
        ride = ride_factory(passenger, driver, status='cancelled')
        client.post('/api/driver/accept', json={'ride_id': ride.id}, headers=driver_headers)
        assert fresh(Ride, ride.id).status == 'cancelled'
