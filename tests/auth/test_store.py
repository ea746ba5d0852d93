from datetime import timedelta

import pytest

from gamenite.auth.store import AuthError, AuthStore, EmailAlreadyRegistered, InvalidCredentials


def test_signup_and_login(auth_store):
    created = auth_store.create_user("Player@Example.com", "hunter22!", name="Player")
    assert created.email == "player@example.com"

    user = auth_store.authenticate("player@example.com", "hunter22!")
    assert user.id == created.id
    assert user.name == "Player"


def test_wrong_password(auth_store):
    auth_store.create_user("a@example.com", "correct-horse")
    with pytest.raises(InvalidCredentials):
        auth_store.authenticate("a@example.com", "battery-staple")


def test_unknown_email(auth_store):
    with pytest.raises(InvalidCredentials):
        auth_store.authenticate("nobody@example.com", "whatever1")


def test_duplicate_email(auth_store):
    auth_store.create_user("a@example.com", "password1")
    with pytest.raises(EmailAlreadyRegistered):
        auth_store.create_user("A@example.com", "password2")


def test_short_password(auth_store):
    with pytest.raises(AuthError):
        auth_store.create_user("a@example.com", "short")


def test_oauth_user_cannot_password_login(auth_store):
    user = auth_store.get_or_create_oauth_user("g@example.com", "Google User")
    assert auth_store.get_or_create_oauth_user("g@example.com").id == user.id
    with pytest.raises(InvalidCredentials):
        auth_store.authenticate("g@example.com", "anything1")


def test_session_roundtrip(auth_store):
    user = auth_store.create_user("a@example.com", "password1")
    token = auth_store.create_session(user)
    assert auth_store.get_session_user(token).id == user.id

    auth_store.revoke_session(token)
    assert auth_store.get_session_user(token) is None


def test_unknown_or_missing_token(auth_store):
    assert auth_store.get_session_user(None) is None
    assert auth_store.get_session_user("not-a-token") is None


def test_expired_session(tmp_path):
    store = AuthStore(str(tmp_path / "auth.db"), session_ttl=timedelta(seconds=-1))
    user = store.create_user("a@example.com", "password1")
    token = store.create_session(user)
    assert store.get_session_user(token) is None
    store.close()
