"""
Payment tests
Tests Paystack initialisation and webhook signature handling
"""
import hashlib
import hmac
import json
from unittest import mock

import pytest
import requests

from yenko.errors import UpstreamError
from yenko.extensions import db
from yenko.models import Payment, Ride
from yenko.services import PaystackGateway, verify_signature, confirm_payment

SECRET = 'sk_test_webhook_secret'
WEBHOOK = '/api/payments/paystack/webhook'


def _sign(body, secret=SECRET):
    return hmac.new(secret.encode('utf-8'), body, hashlib.sha512).hexdigest()


def _post_event(client, event, signature=None):
    body = json.dumps(event).encode('utf-8')
    return client.post(
        WEBHOOK,
        data=body,
        content_type='application/json',
        headers={'X-Paystack-Signature': signature if signature is not None else _sign(body)},
    )


@pytest.fixture
def payment_factory(app):
    def _create_payment(passenger, ride=None, **kwargs):
        defaults = {
            'passenger_id': passenger.id,
            'ride_id': ride.id if ride else None,
            'driver_id': ride.driver_id if ride else None,
            'amount': 27.0,
            'reference': 'yenko_1718000000000_abc1234',
            'status': 'pending',
        }
        defaults.update(kwargs)
        payment = Payment(**defaults)
        db.session.add(payment)
        db.session.commit()
        return payment

    return _create_payment


class TestSignature:

    def test_valid_signature(self):
        body = b'{"event":"charge.success"}'
        assert verify_signature(body, _sign(body), SECRET) is True

    def test_tampered_body(self):
        body = b'{"event":"charge.success"}'
        assert verify_signature(body + b' ', _sign(body), SECRET) is False

    def test_empty_signature_never_matches(self):
        assert verify_signature(b'', '', SECRET) is False
        assert verify_signature(b'{}', _sign(b'{}'), '') is False


class TestInitialize:

    def test_init_creates_pending_payment(self, client, passenger, passenger_headers):
        response = client.post('/api/payments/paystack/init', json={
            'amount': 2700, 'email': 'ama@example.com',
        }, headers=passenger_headers)

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['reference'].startswith('yenko_')
        assert data['authorization_url'].endswith(data['reference'])

        payment = db.session.query(Payment).filter_by(reference=data['reference']).one()
        assert payment.amount == 27.0
        assert payment.status == 'pending'
        assert payment.passenger_id == passenger.id

    def test_init_links_ride(self, client, passenger, driver, ride_factory, passenger_headers):
        ride = ride_factory(passenger, driver)
        response = client.post('/api/payments/paystack/init', json={
            'amount': 2700, 'email': 'ama@example.com', 'metadata': {'ride_id': ride.id},
        }, headers=passenger_headers)
        reference = json.loads(response.data)['reference']
        payment = db.session.query(Payment).filter_by(reference=reference).one()
        assert payment.ride_id == ride.id
        assert payment.driver_id == driver.id

    @pytest.mark.parametrize('amount', [0, -100, 12.5, '2700', None])
    def test_init_rejects_bad_amount(self, client, passenger_headers, amount):
        response = client.post('/api/payments/paystack/init',
            json={'amount': amount, 'email': 'ama@example.com'}, headers=passenger_headers)
        assert response.status_code == 400

    def test_init_requires_auth(self, client):
        response = client.post('/api/payments/paystack/init', json={'amount': 2700, 'email': 'a@b.co'})
        assert response.status_code == 401

    def test_paystack_gateway_success(self):
        gateway = PaystackGateway('sk_test', base_url='https://api.paystack.co')
        fake = mock.Mock(status_code=200)
        fake.json.return_value = {
            'status': True,
            'data': {'authorization_url': 'https://checkout.paystack.com/x', 'reference': 'ref_1'},
        }
        with mock.patch('yenko.services.payments.requests.post', return_value=fake) as post:
            result = gateway.initialize('a@b.co', 2700, 'ref_1')

        assert result == {'authorization_url': 'https://checkout.paystack.com/x', 'reference': 'ref_1'}
        assert post.call_args.args[0] == 'https://api.paystack.co/transaction/initialize'
        assert post.call_args.kwargs['headers']['Authorization'] == 'Bearer sk_test'
        assert post.call_args.kwargs['json']['amount'] == 2700

    def test_paystack_gateway_network_error(self):
        gateway = PaystackGateway('sk_test')
        with mock.patch('yenko.services.payments.requests.post', side_effect=requests.ConnectionError()):
            with pytest.raises(UpstreamError):
                gateway.initialize('a@b.co', 2700, 'ref_1')


class TestWebhook:

    def test_charge_success_marks_paid(self, client, passenger, driver, ride_factory, payment_factory, fresh):
        ride = ride_factory(passenger, driver)
        payment = payment_factory(passenger, ride)

        response = _post_event(client, {'event': 'charge.success', 'data': {'reference': payment.reference}})
        assert response.status_code == 200

        payment = fresh(Payment, payment.id)
        ride = fresh(Ride, ride.id)
        assert payment.status == 'paid'
        assert payment.paid_at is not None
        assert ride.payment_confirmed is True
        assert ride.status == 'pending'

    def test_bad_signature_changes_nothing(self, client, passenger, driver, ride_factory, payment_factory, fresh):
        ride = ride_factory(passenger, driver)
        payment = payment_factory(passenger, ride)

        response = _post_event(client, {'event': 'charge.success', 'data': {'reference': payment.reference}},
                               signature='0' * 128)
        assert response.status_code == 401
        assert fresh(Payment, payment.id).status == 'pending'
        assert fresh(Ride, ride.id).payment_confirmed is False

    def test_missing_signature(self, client, passenger, payment_factory):
        payment = payment_factory(passenger)
        response = _post_event(client, {'event': 'charge.success', 'data': {'reference': payment.reference}},
                               signature='')
        assert response.status_code == 401

    def test_other_events_acknowledged(self, client, passenger, payment_factory, fresh):
        payment = payment_factory(passenger)
        response = _post_event(client, {'event': 'charge.failed', 'data': {'reference': payment.reference}})
        assert response.status_code == 200
        assert fresh(Payment, payment.id).status == 'pending'

    def test_non_object_data_rejected(self, client):
        for data in ('x', ['ref'], 42):
            response = _post_event(client, {'event': 'charge.success', 'data': data})
            assert response.status_code == 400
            assert json.loads(response.data)['code'] == 'INVALID_INPUT'

    def test_unknown_reference(self, client):
        response = _post_event(client, {'event': 'charge.success', 'data': {'reference': 'nope'}})
        assert response.status_code == 404

    def test_flag_only_set_while_pending(self, app, passenger, driver, ride_factory, payment_factory, fresh):
        ride = ride_factory(passenger, driver, status='driver_assigned')
        payment = payment_factory(passenger, ride)

        confirm_payment(payment.reference)
        assert fresh(Payment, payment.id).status == 'paid'
        ride = fresh(Ride, ride.id)
        assert ride.payment_confirmed is False
        assert ride.status == 'driver_assigned'

    def test_confirm_is_idempotent(self, app, passenger, payment_factory):
        payment = payment_factory(passenger)
        first = confirm_payment(payment.reference)
        paid_at = first.paid_at
        assert confirm_payment(payment.reference).paid_at == paid_at

    def test_body_is_not_sanitised(self, client, passenger, payment_factory, fresh):
        payment = payment_factory(passenger)
        event = {'event': 'charge.success', 'data': {'reference': payment.reference, 'note': '<b>&</b>'}}
        response = _post_event(client, event)
        assert response.status_code == 200
        assert fresh(Payment, payment.id).status == 'paid'
