"""Client SessionManager driven against the API through the test client."""

import httpx
import pytest

from conftest import PASSWORD, current_code, make_user, wrong_code
from ghost_league.client import ApiClient, FileTokenStore, MemoryTokenStore, SessionManager
from ghost_league.client.http import error_from_response
from ghost_league.client.state import ANONYMOUS, AUTHENTICATED, ERROR, PENDING_VERIFICATION
from ghost_league.errors import (
    AuthError,
    InvalidOrExpiredCodeError,
    NetworkError,
    RateLimitError,
    RequestInFlightError,
    ResendCooldownError,
    ServerError,
    TooManyAttemptsError,
    ValidationError,
)
from ghost_league.models.user import User


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def store():
    return MemoryTokenStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(client, store, clock):
    return SessionManager(ApiClient(http=client), store, clock=clock)


def offline_api(handler=None):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    return ApiClient(http=httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler or refuse)))


class TestRegistrationFlow:
    def test_register_verify_scenario(self, session, store, db_session):
        session.register("Player123", "p1@example.com", "secret1")
        assert session.state.phase == PENDING_VERIFICATION
        assert session.state.pending_email == "p1@example.com"
        assert store.get_token() is None

        code = current_code(db_session, "p1@example.com").code
        with pytest.raises(InvalidOrExpiredCodeError):
            session.verify_email(wrong_code(code))
        assert session.state.phase == PENDING_VERIFICATION
        assert isinstance(session.state.error, InvalidOrExpiredCodeError)

        state = session.verify_email(code)
        assert state.phase == AUTHENTICATED
        assert state.user["emailVerified"] is True
        assert store.get_token() == state.token
        assert session.api.authorization == f"Bearer {state.token}"

    def test_short_password_is_rejected_before_the_request(self, session, db_session):
        with pytest.raises(ValidationError) as exc:
            session.register("Player123", "p1@example.com", "12345")
        assert "Password must be at least 6 characters." in exc.value.errors
        assert session.state.phase == ERROR
        assert not session.state.is_loading
        assert db_session.query(User).count() == 0

    def test_resend_cooldown(self, session, clock):
        session.register("Player123", "p1@example.com", "secret1")
        body = session.resend_code()
        assert body["expiresIn"] == 5
        assert session.state.phase == PENDING_VERIFICATION
        assert not session.state.is_loading

        clock.now += 15
        with pytest.raises(ResendCooldownError) as exc:
            session.resend_code()
        assert exc.value.seconds_remaining == 45

        clock.now += 46
        session.resend_code()


class TestLogin:
    def test_login_and_logout(self, session, store, player):
        state = session.login(player.email, PASSWORD)
        assert state.phase == AUTHENTICATED
        assert store.get_token() == state.token
        assert session.api.authorization is not None

        state = session.logout()
        assert state.phase == ANONYMOUS
        assert store.get_token() is None
        assert session.api.authorization is None

    def test_unverified_login_goes_to_verification(self, session, store, db_session):
        make_user(db_session, "Unverified", "new@example.com", verified=False)
        state = session.login("new@example.com", PASSWORD)
        assert state.phase == PENDING_VERIFICATION
        assert state.pending_email == "new@example.com"
        assert state.token is None
        assert store.get_token() is None

    def test_bad_credentials(self, session, store, player):
        with pytest.raises(AuthError):
            session.login(player.email, "wrong-password")
        assert session.state.phase == ERROR
        assert store.get_token() is None
        session.clear_error()
        assert session.state.phase == ANONYMOUS

    def test_second_action_while_loading_is_rejected(self, session, player):
        rejected = []

        def resubmit(state):
            if state.is_loading:
                with pytest.raises(RequestInFlightError):
                    session.login(player.email, PASSWORD)
                rejected.append(True)

        session.subscribe(resubmit)
        session.login(player.email, PASSWORD)
        assert rejected == [True]
        assert session.state.phase == AUTHENTICATED

    def test_observers(self, session, player):
        phases = []
        unsubscribe = session.subscribe(lambda s: phases.append((s.phase, s.is_loading)))
        session.login(player.email, PASSWORD)
        assert phases == [(ANONYMOUS, True), (AUTHENTICATED, False)]
        unsubscribe()
        session.logout()
        assert len(phases) == 2


class TestRestore:
    def test_restore_while_busy_leaves_no_credential(self, session, store, player):
        store.set_token("stored-token")
        seen = []

        def restore_during_login(state):
            if state.is_loading:
                with pytest.raises(RequestInFlightError):
                    session.restore()
                seen.append(session.api.authorization)

        session.subscribe(restore_during_login)
        with pytest.raises(AuthError):
            session.login(player.email, "wrong-password")
        assert seen == [None]

    def test_restore_persisted_session(self, client, store, player):
        SessionManager(ApiClient(http=client), store).login(player.email, PASSWORD)
        client.headers.pop("Authorization", None)

        restored = SessionManager(ApiClient(http=client), store)
        state = restored.restore()
        assert state.phase == AUTHENTICATED
        assert state.user["id"] == player.id

    def test_restore_with_rejected_token(self, client, store):
        store.set_token("not-a-jwt")
        manager = SessionManager(ApiClient(http=client), store)
        with pytest.raises(AuthError):
            manager.restore()
        assert store.get_token() is None
        assert manager.api.authorization is None
        assert not manager.state.is_authenticated

    def test_restore_without_token(self, session):
        assert session.restore().phase == ANONYMOUS

    def test_file_store_survives_restart(self, client, tmp_path, player):
        path = tmp_path / "session.json"
        SessionManager(ApiClient(http=client), FileTokenStore(path)).login(player.email, PASSWORD)
        assert FileTokenStore(path).get_token()
        client.headers.pop("Authorization", None)
        state = SessionManager(ApiClient(http=client), FileTokenStore(path)).restore()
        assert state.is_authenticated


class TestTransport:
    def test_network_error(self, store):
        manager = SessionManager(offline_api(), store)
        with pytest.raises(NetworkError):
            manager.login("p1@example.com", "secret1")
        assert isinstance(manager.state.error, NetworkError)
        assert not manager.state.is_loading

    def test_timeout_is_a_network_error(self, store):
        def slow(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(NetworkError):
            SessionManager(offline_api(slow), store).login("p1@example.com", "secret1")

    def test_server_error(self, store):
        api = offline_api(lambda request: httpx.Response(502, text="Bad gateway"))
        with pytest.raises(ServerError):
            api.get("/health")

    def test_rate_limit_message_is_kept(self):
        err = error_from_response(429, {"message": "Slow down, please.", "code": "rate_limited", "retryAfter": "3 per 1 hour"})
        assert isinstance(err, RateLimitError)
        assert err.message == "Slow down, please."
        assert err.retry_after == "3 per 1 hour"

    def test_too_many_attempts_mapping(self):
        err = error_from_response(429, {"message": "Too many", "code": "too_many_attempts"})
        assert isinstance(err, TooManyAttemptsError)
        assert err.retry_after

    def test_default_timeout(self):
        api = ApiClient("http://api.test")
        assert api.http.timeout.read == 10.0
        api.close()
