"""Tests for session.py - explicit session context with subscriptions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from transterm.session import Session, SessionContext


class TestSession:
    def test_not_expired_without_expiry(self):
        assert Session(access_token="t").is_expired() is False

    def test_expired(self):
        past = datetime.now(timezone.utc) - timedelta(minutes=1)
        assert Session(access_token="t", expires_at=past).is_expired() is True

    def test_naive_expiry_read_as_utc(self):
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        assert Session(access_token="t", expires_at=now - timedelta(minutes=1)).is_expired() is True
        assert Session(access_token="t", expires_at=now + timedelta(hours=1)).is_expired() is False

    def test_naive_expiry_gates_writes(self):
        later = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
        assert SessionContext(Session(access_token="t", expires_at=later)).can_write is True

    def test_token_not_in_repr(self):
        assert "secret" not in repr(Session(access_token="secret", user_id="u"))


class TestSessionContext:
    def test_signed_out_by_default(self):
        ctx = SessionContext()
        assert ctx.current is None
        assert ctx.can_write is False
        assert ctx.access_token is None

    def test_sign_in_and_out(self):
        ctx = SessionContext()
        ctx.sign_in(Session(access_token="abc", user_id="u1"))
        assert ctx.can_write is True
        assert ctx.access_token == "abc"

        ctx.sign_out()
        assert ctx.can_write is False

    def test_expired_session_cannot_write(self):
        past = datetime.now(timezone.utc) - timedelta(seconds=5)
        ctx = SessionContext(Session(access_token="abc", expires_at=past))
        assert ctx.current is None
        assert ctx.can_write is False

    def test_subscribe_receives_current_immediately(self):
        session = Session(access_token="abc")
        ctx = SessionContext(session)
        seen = []
        ctx.subscribe(seen.append)
        assert seen == [session]

    def test_subscribe_receives_changes(self):
        ctx = SessionContext()
        seen = []
        ctx.subscribe(seen.append)
        session = Session(access_token="abc")
        ctx.sign_in(session)
        ctx.sign_out()
        assert seen == [None, session, None]

    def test_unsubscribe_stops_changes(self):
        ctx = SessionContext()
        seen = []
        subscription = ctx.subscribe(seen.append)
        subscription.unsubscribe()
        subscription.unsubscribe()
        ctx.sign_in(Session(access_token="abc"))
        assert seen == [None]
        assert subscription.active is False

    def test_sign_out_when_signed_out_is_quiet(self):
        ctx = SessionContext()
        seen = []
        ctx.subscribe(seen.append)
        ctx.sign_out()
        assert seen == [None]

    def test_contexts_are_independent(self):
        a = SessionContext()
        b = SessionContext()
        a.sign_in(Session(access_token="abc"))
        assert b.can_write is False
