"""
Pytest configuration and fixtures for Yenko backend tests
"""
import itertools
import os

import pytest

from yenko import create_app
from yenko.extensions import db
from yenko.models import Profile, Driver, Passenger, Ride, utcnow
from yenko.security import generate_token

_phone_numbers = itertools.count(100000000)


def next_phone():
    return '+233{:09d}'.format(next(_phone_numbers))


@pytest.fixture(scope='function')
def app():
    """Fresh application and in-memory database for every test"""
    os.environ['FLASK_ENV'] = 'testing'
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def otp_store(app):
    return app.extensions['otp_store']


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture
def profile_factory(app):
    """Create a profile with its role record"""
    def _create_profile(**kwargs):
        defaults = {
            'phone': next_phone(),
            'full_name': 'Ama Mensah',
            'role': 'passenger',
        }
        defaults.update(kwargs)
        profile = Profile(**defaults)
        db.session.add(profile)
        db.session.flush()
        if profile.role == 'passenger':
            db.session.add(Passenger(id=profile.id))
        db.session.commit()
        return profile

    return _create_profile


@pytest.fixture
def driver_factory(profile_factory):
    """Create a driver profile with a registered vehicle (pass vehicle=False to skip)"""
    plates = itertools.count(1000)

    def _create_driver(vehicle=True, **kwargs):
        profile_fields = {k: kwargs.pop(k) for k in list(kwargs) if k in ('phone', 'full_name', 'suspended', 'rating')}
        profile_fields.setdefault('full_name', 'Kofi Boateng')
        profile = profile_factory(role='driver', **profile_fields)

        fields = {'id': profile.id}
        if vehicle:
            fields.update({
                'car_make': 'Toyota',
                'car_model': 'Corolla',
                'car_year': '2018',
                'car_color': 'Silver',
                'plate_number': 'GR-{}-24'.format(next(plates)),
            })
        fields.update(kwargs)
        db.session.add(Driver(**fields))
        db.session.commit()
        return profile

    return _create_driver


@pytest.fixture
def ride_factory(app):
    """Create a ride in any status"""
    def _create_ride(passenger, driver, status='pending', **kwargs):
        now = utcnow()
        defaults = {
            'passenger_id': passenger.id,
            'driver_id': driver.id,
            'pickup': {'address': 'Madina', 'lat': None, 'lng': None},
            'destination': {'address': 'Accra Mall', 'lat': None, 'lng': None},
            'distance_km': 20.0,
            'ride_class': 'basic',
            'estimated_price': 27.0,
            'status': status,
        }
        if status in ('driver_assigned', 'started', 'completed'):
            defaults['assigned_at'] = now
        if status in ('started', 'completed'):
            defaults['started_at'] = now
        if status == 'completed':
            defaults['ended_at'] = now
            defaults['final_price'] = 27.0
            defaults['trip_code'] = 'AB12'
        defaults.update(kwargs)
        ride = Ride(**defaults)
        db.session.add(ride)
        db.session.commit()
        return ride

    return _create_ride


# ---------------------------------------------------------------------------
# Accounts and headers
# ---------------------------------------------------------------------------
def headers_for(profile):
    token = generate_token(profile.id, profile.phone, profile.role)
    return {
        'Authorization': f'Bearer {token}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def passenger(profile_factory):
    return profile_factory(full_name='Ama Mensah', role='passenger')


@pytest.fixture
def driver(driver_factory):
    return driver_factory(full_name='Kofi Boateng')


@pytest.fixture
def admin(profile_factory):
    return profile_factory(full_name='Yaw Admin', role='admin')


@pytest.fixture
def passenger_headers(passenger):
    """Generate auth headers with JWT token for passenger"""
    return headers_for(passenger)


@pytest.fixture
def driver_headers(driver):
    """Generate auth headers with JWT token for driver"""
    return headers_for(driver)


@pytest.fixture
def admin_headers(admin):
    """Generate auth headers with JWT token for admin"""
    return headers_for(admin)


@pytest.fixture
def fresh():
    """Re-read a row from the database, bypassing the session identity map"""
    def _fresh(model, pk):
        db.session.expire_all()
        return db.session.get(model, pk)

    return _fresh


@pytest.fixture
def auth_headers():
    """Build auth headers for any profile"""
    return headers_for
