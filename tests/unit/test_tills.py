"""
Unit tests for the till registry and sign-in events.
"""

import pytest

from pos.exceptions import LoginRequiredError
from pos.services.auth_service import SIGNED_IN, SIGNED_OUT, AuthSession, IdentityProvider
from pos.state.tills import TillRegistry, get_store


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(app, session, clock):
    registry = TillRegistry(clock=clock)
    registry.max_idle = 60
    with app.app_context():
        yield registry
    registry.clear()


def till(operator, till_id):
    return AuthSession(user_id=operator.id, email=operator.email, till_id=till_id)


class TestIdleEviction:

    def test_same_till_reuses_store(self, registry, operator):
        first = registry.get_or_create(till(operator, 'till-a'))
        assert registry.get_or_create(till(operator, 'till-a')) is first
        assert first.mounted

    def test_idle_till_closed_on_next_access(self, registry, operator, clock):
        idle = registry.get_or_create(till(operator, 'till-a'))
        clock.now += 30
        registry.get_or_create(till(operator, 'till-b'))
        clock.now += 45

        registry.get_or_create(till(operator, 'till-b'))

        assert len(registry) == 1
        assert registry.get('till-a') is None
        assert idle.mounted is False

    def test_access_keeps_till_open(self, registry, operator, clock):
        registry.get_or_create(till(operator, 'till-a'))
        for _ in range(3):
            clock.now += 50
            registry.get_or_create(till(operator, 'till-a'))

        assert registry.evict_idle() == []
        assert len(registry) == 1

    def test_evict_idle_returns_closed_ids(self, registry, operator, clock):
        registry.get_or_create(till(operator, 'till-a'))
        clock.now += 10

        assert registry.evict_idle(max_idle=5) == ['till-a']
        assert len(registry) == 0

    def test_sign_out_event_closes_till(self, registry, operator):
        auth_session = till(operator, 'till-a')
        registry.get_or_create(auth_session)

        registry._on_auth_state_change(SIGNED_OUT, auth_session)

        assert len(registry) == 0

    def test_idle_limit_follows_session_lifetime(self, app):
        assert app.extensions['tills'].max_idle == 86400


class TestSignInEvents:

    def test_signing_in_again_signs_out_previous_till(self, app, operator):
        provider = IdentityProvider()
        events = []
        provider.on_auth_state_change(lambda event, s: events.append((event, s.till_id)))

        with app.test_request_context():
            first = provider.sign_in(operator)
            second = provider.sign_in(operator)

        assert first.till_id != second.till_id
        assert events == [
            (SIGNED_IN, first.till_id),
            (SIGNED_OUT, first.till_id),
            (SIGNED_IN, second.till_id),
        ]


class TestGetStore:

    def test_requires_login_with_401(self, app, session):
        with app.test_request_context():
            with pytest.raises(LoginRequiredError) as exc_info:
                get_store()

        error = exc_info.value
        assert error.status_code == 401
        assert error.to_dict() == {
            'code': 'login_required',
            'message': 'Silakan masuk terlebih dahulu.',
            'status': 'error',
        }
