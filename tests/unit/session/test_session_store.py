"""Tests for the session store: transitions, expiry updates and logout."""

from datetime import timedelta

import pytest
import structlog
from pydantic import ValidationError

from sessionguard.core.modules.session.models import Credential, Role, SessionState, User


@pytest.fixture
def user():
    return User(id="u-1", email="ada@example.com", name="Ada", role=Role.EMPLOYEE)


@pytest.fixture
def store(services):
    return services.session


class TestSetSession:
    async def test_starts_active_with_default_idle_budget(self, store, user, clock, config):
        session = store.set_session(user, "sess-1", Credential("tok"))

        assert session.state is SessionState.ACTIVE
        assert session.user == user
        assert session.credential == "tok"
        assert session.session_id == "sess-1"
        assert session.last_activity_at == clock()
        assert session.idle_expiry_at == clock() + timedelta(milliseconds=config.default_idle_timeout_ms)

    async def test_persists_session(self, store, user, persistence):
        store.set_session(user, "sess-1", Credential("tok"))

        assert persistence.saved.session_id == "sess-1"
        assert persistence.saved.credential == "tok"


class TestUpdateIdleExpiry:
    async def test_sets_expiry_from_remaining(self, store, user, clock):
        store.set_session(user, "sess-1", Credential("tok"))

        session = store.update_idle_expiry(600_000)

        assert session.idle_expiry_at == clock() + timedelta(minutes=10)
        assert session.state is SessionState.ACTIVE

    async def test_below_threshold_enters_warning(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))

        assert store.update_idle_expiry(119_999).state is SessionState.WARNING
        assert store.update_idle_expiry(60_000).state is SessionState.WARNING

    async def test_threshold_itself_is_not_warning(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))

        assert store.update_idle_expiry(120_000).state is SessionState.ACTIVE

    async def test_extension_returns_to_active(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))
        store.update_idle_expiry(30_000)

        assert store.update_idle_expiry(900_000).state is SessionState.ACTIVE

    async def test_ignored_when_anonymous(self, store):
        session = store.update_idle_expiry(30_000)

        assert session.state is SessionState.ANONYMOUS
        assert session.idle_expiry_at is None


class TestActivityAndProfile:
    async def test_record_activity_does_not_extend_expiry(self, store, user, clock):
        session = store.set_session(user, "sess-1", Credential("tok"))
        clock.advance(seconds=45)

        store.record_activity()

        assert store.snapshot().last_activity_at == clock()
        assert store.snapshot().idle_expiry_at == session.idle_expiry_at

    async def test_enter_warning_keeps_expiry(self, store, user):
        session = store.set_session(user, "sess-1", Credential("tok"))

        warned = store.enter_warning()

        assert warned.state is SessionState.WARNING
        assert warned.idle_expiry_at == session.idle_expiry_at

    async def test_enter_warning_noop_when_anonymous(self, store):
        assert store.enter_warning().state is SessionState.ANONYMOUS

    async def test_update_user(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))

        session = store.update_user(name="Ada Lovelace", avatar_url="/ada.png")

        assert session.user.name == "Ada Lovelace"
        assert session.user.avatar_url == "/ada.png"
        assert session.user.role is Role.EMPLOYEE
        assert session.state is SessionState.ACTIVE

    async def test_update_user_validates_role(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))

        with pytest.raises(ValidationError):
            store.update_user(role="Superuser")

    async def test_update_user_noop_when_anonymous(self, store):
        assert store.update_user(name="Nobody").user is None

    async def test_snapshot_is_detached_from_later_writes(self, store, user):
        before = store.set_session(user, "sess-1", Credential("tok"))

        store.update_idle_expiry(30_000)

        assert before.state is SessionState.ACTIVE
        assert store.snapshot().state is SessionState.WARNING


class TestLogout:
    async def test_clears_everything(self, store, user, persistence):
        store.set_session(user, "sess-1", Credential("tok"))

        assert store.logout() is True

        session = store.snapshot()
        assert session.state is SessionState.ANONYMOUS
        assert session.user is None
        assert session.credential is None
        assert session.session_id is None
        assert session.idle_expiry_at is None
        assert persistence.saved is None

    async def test_passes_through_expired(self, store, user):
        transitions = []
        store.subscribe(lambda before, after: transitions.append((before.state, after.state)))
        store.set_session(user, "sess-1", Credential("tok"))

        store.logout()

        assert transitions == [
            (SessionState.ANONYMOUS, SessionState.ACTIVE),
            (SessionState.ACTIVE, SessionState.EXPIRED),
            (SessionState.EXPIRED, SessionState.ANONYMOUS),
        ]

    async def test_repeated_logout_is_noop(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))

        assert store.logout() is True
        assert store.logout() is False
        assert store.snapshot().state is SessionState.ANONYMOUS

    async def test_session_id_bound_for_logging_while_signed_in(self, store, user):
        store.set_session(user, "sess-1", Credential("tok"))
        assert structlog.contextvars.get_contextvars()["session_id"] == "sess-1"

        store.logout()

        assert "session_id" not in structlog.contextvars.get_contextvars()
