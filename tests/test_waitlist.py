"""
Waitlist tests
"""
import json


def _join(client, **overrides):
    body = {'name': 'Efua Asante', 'phone': '+233241234567', 'area': 'Madina', 'role': 'driver'}
    body.update(overrides)
    return client.post('/api/waitlist/join', json=body)


class TestWaitlist:

    def test_join(self, client):
        response = _join(client)
        assert response.status_code == 201
        assert json.loads(response.data)['message'] == 'Successfully joined the driver waitlist!'

    def test_duplicate_phone_rejected(self, client):
        _join(client)
        response = _join(client, name='Someone Else', role='passenger')
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == 'You are already on the waitlist'

    def test_required_fields(self, client):
        response = _join(client, area='')
        assert response.status_code == 400

    def test_bad_role(self, client):
        assert _join(client, role='owner').status_code == 400

    def test_bad_email(self, client):
        assert _join(client, email='not-an-email').status_code == 400

    def test_stats(self, client):
        _join(client)
        _join(client, phone='+233241234568', role='passenger')
        _join(client, phone='+233241234569', role='passenger')

        data = json.loads(client.get('/api/waitlist/stats').data)
        assert data['total'] == 3
        assert data['byRole'] == {'driver': 1, 'passenger': 2}
