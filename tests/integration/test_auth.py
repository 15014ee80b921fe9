"""
Integration tests for authentication and till sessions.
"""

from pos.models import Operator


class TestRegistration:
    """Operator registration."""

    def test_register_signs_in_on_new_till(self, client, session):
        response = client.post('/register', json={
            'email': 'Pemilik@Toko.test',
            'password': 'securepass123',
            'password_confirm': 'securepass123',
            'full_name': 'Pemilik Toko'
        })

        assert response.status_code == 201
        data = response.get_json()
        assert data['operator']['email'] == 'pemilik@toko.test'
        assert data['session']['till_id']

        operator = session.query(Operator).filter_by(email='pemilik@toko.test').first()
        assert operator is not None
        assert operator.full_name == 'Pemilik Toko'

    def test_register_with_existing_email_fails(self, client, operator):
        response = client.post('/register', json={
            'email': 'kasir@toko.test',
            'password': 'password123',
        })

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Email sudah terdaftar.'

    def test_register_with_mismatched_passwords_fails(self, client, session):
        response = client.post('/register', json={
            'email': 'baru@toko.test',
            'password': 'password123',
            'password_confirm': 'different123',
        })

        assert response.status_code == 400
        assert session.query(Operator).count() == 0

    def test_register_validates_input(self, client, session):
        response = client.post('/register', data={'email': 'bukan-email', 'password': '123'})

        assert response.status_code == 400
        message = response.get_json()['message']
        assert 'Email tidak valid.' in message
        assert 'minimal 6' in message


class TestLogin:
    """Login, session probe and logout."""

    def test_login_success(self, client, operator):
        response = client.post('/login', json={'email': 'kasir@toko.test', 'password': 'password123'})

        assert response.status_code == 200
        assert response.get_json()['operator']['email'] == 'kasir@toko.test'

    def test_login_wrong_password(self, client, operator):
        response = client.post('/login', json={'email': 'kasir@toko.test', 'password': 'salah123'})

        assert response.status_code == 403
        assert response.get_json()['message'] == 'Email atau kata sandi salah.'

    def test_login_missing_fields(self, client, session):
        response = client.post('/login', json={'email': ''})
        assert response.status_code == 400

    def test_session_probe(self, client, operator):
        anonymous = client.get('/session').get_json()
        assert anonymous['authenticated'] is False
        assert anonymous['session'] is None
        assert 'csrf_token' in anonymous

        client.post('/login', json={'email': 'kasir@toko.test', 'password': 'password123'})
        signed_in = client.get('/session').get_json()
        assert signed_in['authenticated'] is True
        assert signed_in['operator']['email'] == 'kasir@toko.test'
        assert signed_in['session']['till_id']

    def test_logout_drops_till(self, app, authenticated_client):
        assert authenticated_client.get('/cashier/').status_code == 200
        tills = app.extensions['tills']
        assert len(tills) == 1

        response = authenticated_client.post('/logout')

        assert response.status_code == 200
        assert len(tills) == 0
        assert authenticated_client.get('/session').get_json()['authenticated'] is False

    def test_signing_in_again_replaces_the_till(self, app, client, operator):
        feed = app.extensions['realtime']
        baseline = feed.subscriber_count()

        for _ in range(5):
            client.post('/login', json={'email': 'kasir@toko.test', 'password': 'password123'})
            assert client.get('/cashier/').status_code == 200

        assert len(app.extensions['tills']) == 1
        assert feed.subscriber_count() == baseline + 4

    def test_deactivated_operator_loses_till(self, app, authenticated_client, session):
        assert authenticated_client.get('/cashier/').status_code == 200
        tills = app.extensions['tills']
        assert len(tills) == 1

        session.query(Operator).filter_by(email='kasir@toko.test').update({'active': False})
        session.commit()
        response = authenticated_client.get('/cashier/')

        assert response.status_code == 401
        assert len(tills) == 0

    def test_protected_routes_require_login(self, client, session):
        for path in ('/cashier/', '/products/', '/categories/', '/history/', '/reports/', '/settings/'):
            response = client.get(path)
            assert response.status_code == 401
            assert response.get_json()['code'] == 'login_required'

    def test_each_login_opens_its_own_till(self, app, client, operator):
        other = app.test_client()
        for c in (client, other):
            c.post('/login', json={'email': 'kasir@toko.test', 'password': 'password123'})
            c.get('/cashier/')

        assert len(app.extensions['tills']) == 2


class TestHealth:

    def test_health(self, client, session):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json() == {
            'status': 'healthy', 'database': 'connected', 'realtime': 'in-process'
        }
