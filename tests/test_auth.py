"""Tests for the supporter registration flow and the Firebase REST provider."""

from unittest.mock import MagicMock

import pytest
import requests

from core.auth import (
    MISSING_CREDENTIALS_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    REGISTER,
    REGISTERED_MESSAGE,
    SIGN_IN,
    WELCOME_BACK_MESSAGE,
    AuthUser,
    FirebaseIdentityProvider,
    build_identity_provider,
    firebase_error_message,
    submit_support,
)
from core.config import Settings
from core.errors import AuthError


def _response(status_code, body):
    response = MagicMock(status_code=status_code)
    response.json.return_value = body
    return response


def test_submit_support_without_provider():
    outcome = submit_support(None, REGISTER, "a@example.com", "secret123")
    assert not outcome.ok
    assert outcome.error == NOT_CONFIGURED_MESSAGE


@pytest.mark.parametrize("email, password", [("", "secret123"), ("a@example.com", ""), ("   ", "x")])
def test_submit_support_requires_email_and_password(fake_provider, email, password):
    outcome = submit_support(fake_provider, REGISTER, email, password)
    assert outcome.error == MISSING_CREDENTIALS_MESSAGE
    assert fake_provider.accounts == {}


def test_register_then_sign_in(fake_provider):
    registered = submit_support(fake_provider, REGISTER, "a@example.com", "secret123", name=" Jane Doe ")
    assert registered.ok
    assert registered.message == REGISTERED_MESSAGE
    assert registered.user == AuthUser(uid="uid-1", email="a@example.com", display_name="Jane Doe")

    fake_provider.sign_out()
    assert fake_provider.current_user is None

    signed_in = submit_support(fake_provider, SIGN_IN, "a@example.com", "secret123")
    assert signed_in.message == WELCOME_BACK_MESSAGE
    assert fake_provider.current_user == registered.user


def test_provider_rejection_becomes_message(fake_provider):
    submit_support(fake_provider, REGISTER, "a@example.com", "secret123")
    duplicate = submit_support(fake_provider, REGISTER, "a@example.com", "secret123")
    wrong = submit_support(fake_provider, SIGN_IN, "a@example.com", "nope")

    assert duplicate.error == "An account with this email already exists."
    assert wrong.error == "Invalid email or password."
    assert wrong.user is None


def test_firebase_error_message_mapping():
    assert firebase_error_message("EMAIL_EXISTS") == "An account with this email already exists."
    assert firebase_error_message("WEAK_PASSWORD : Password should be at least 6 characters") == (
        "Password should be at least 6 characters."
    )
    assert firebase_error_message("SOMETHING_NEW") == "Unable to complete the request."


def test_firebase_register_sets_display_name():
    session = MagicMock()
    session.post.side_effect = [
        _response(200, {"localId": "u1", "email": "a@example.com", "idToken": "tok"}),
        _response(200, {"localId": "u1", "email": "a@example.com", "displayName": "Jane"}),
    ]
    provider = FirebaseIdentityProvider("key", session=session)

    user = provider.register("a@example.com", "secret123", "Jane")

    assert user == AuthUser(uid="u1", email="a@example.com", display_name="Jane")
    assert provider.current_user == user
    first, second = session.post.call_args_list
    assert first.args[0].endswith("accounts:signUp")
    assert first.kwargs["params"] == {"key": "key"}
    assert second.args[0].endswith("accounts:update")
    assert second.kwargs["json"]["idToken"] == "tok"


def test_firebase_sign_in_and_sign_out():
    session = MagicMock()
    session.post.return_value = _response(200, {"localId": "u2", "email": "b@example.com", "displayName": ""})
    provider = FirebaseIdentityProvider("key", session=session)

    user = provider.sign_in("b@example.com", "pw")

    assert user == AuthUser(uid="u2", email="b@example.com", display_name=None)
    provider.sign_out()
    assert provider.current_user is None


def test_firebase_rejection_raises_auth_error():
    session = MagicMock()
    session.post.return_value = _response(400, {"error": {"code": 400, "message": "INVALID_LOGIN_CREDENTIALS"}})
    provider = FirebaseIdentityProvider("key", session=session)

    with pytest.raises(AuthError, match="Invalid email or password"):
        provider.sign_in("b@example.com", "pw")
    assert provider.current_user is None


def test_firebase_network_failure_raises_auth_error():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("offline")
    provider = FirebaseIdentityProvider("key", session=session)

    outcome = submit_support(provider, SIGN_IN, "b@example.com", "pw")

    assert outcome.error == "Unable to reach the authentication service."


def test_build_identity_provider_requires_api_key():
    assert build_identity_provider(Settings(FIREBASE_API_KEY=None)) is None
    provider = build_identity_provider(Settings(FIREBASE_API_KEY="abc"))
    assert isinstance(provider, FirebaseIdentityProvider)
    assert provider.api_key == "abc"
