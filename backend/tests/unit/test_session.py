"""
Unit tests for Session and SessionProvider.
"""
import pytest
from jose import JWTError, jwt

from navimed_reports.core.session import Session, SessionProvider, session_from_token


@pytest.mark.unit
class TestSessionFromToken:

    def test_reads_navimed_claims(self, token_factory):
        token = token_factory(user_id="u-42", tenant_id="t-7", role="physician", username="drlee")
        session = Session.from_token(token)

        assert session.user_id == "u-42"
        assert session.tenant_id == "t-7"
        assert session.role == "physician"
        assert session.username == "drlee"
        assert session.token == token

    def test_falls_back_to_sub_claim(self):
        token = jwt.encode({"sub": "u-9"}, "any-secret", algorithm="HS256")
        assert Session.from_token(token).user_id == "u-9"

    def test_token_without_user_is_rejected(self):
        token = jwt.encode({"role": "admin"}, "any-secret", algorithm="HS256")
        with pytest.raises(JWTError):
            Session.from_token(token)

    def test_garbage_token_is_rejected(self):
        with pytest.raises(JWTError):
            Session.from_token("not-a-jwt")


@pytest.mark.unit
class TestSessionFromConfiguredToken:

    def test_none_for_missing_token(self):
        assert session_from_token(None) is None
        assert session_from_token("") is None

    def test_none_for_unreadable_token(self):
        assert session_from_token("not-a-jwt") is None

    def test_session_for_valid_token(self, token):
        assert session_from_token(token).user_id == "user-1"


@pytest.mark.unit
class TestSessionProvider:

    def test_starts_empty(self):
        assert SessionProvider().current() is None

    def test_sign_in_and_out(self, session):
        provider = SessionProvider()
        provider.sign_in(session)
        assert provider.current() is session
        provider.sign_out()
        assert provider.current() is None

    def test_sign_in_with_token(self, token):
        provider = SessionProvider()
        session = provider.sign_in_with_token(token)
        assert provider.current() is session
        assert session.user_id == "user-1"
