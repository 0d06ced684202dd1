"""Supporter registration against an external identity provider.

Credentials are never stored locally. The provider keeps only a reference to
the currently signed-in user; sign-out drops it.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from core.config import Settings
from core.errors import AuthError


logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"

REGISTER = "register"
SIGN_IN = "signin"

NOT_CONFIGURED_MESSAGE = "Add your FIREBASE_* environment variables to enable registration."
MISSING_CREDENTIALS_MESSAGE = "Email and password are required."
REGISTERED_MESSAGE = "Thanks for registering your support. You are on the record for our Statement of Intent."
WELCOME_BACK_MESSAGE = "Welcome back, your support is recorded."
FALLBACK_MESSAGE = "Unable to complete the request."

FIREBASE_ERROR_MESSAGES = {
    "EMAIL_EXISTS": "An account with this email already exists.",
    "INVALID_EMAIL": "Enter a valid email address.",
    "WEAK_PASSWORD": "Password should be at least 6 characters.",
    "MISSING_PASSWORD": MISSING_CREDENTIALS_MESSAGE,
    "MISSING_EMAIL": MISSING_CREDENTIALS_MESSAGE,
    "EMAIL_NOT_FOUND": "Invalid email or password.",
    "INVALID_PASSWORD": "Invalid email or password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
    "OPERATION_NOT_ALLOWED": "Email/password sign-in is disabled for this project.",
}


@dataclass(frozen=True)
class AuthUser:
    uid: str
    email: str
    display_name: Optional[str] = None


@dataclass(frozen=True)
class SupportOutcome:
    user: Optional[AuthUser] = None
    message: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


class IdentityProvider(ABC):
    @abstractmethod
    def register(self, email: str, password: str, display_name: Optional[str] = None) -> AuthUser:
        ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthUser:
        ...

    @abstractmethod
    def sign_out(self) -> None:
        ...

    @property
    @abstractmethod
    def current_user(self) -> Optional[AuthUser]:
        ...


def firebase_error_message(code: str) -> str:
    # Firebase sometimes appends detail, e.g. "WEAK_PASSWORD : Password should be ..."
    key = (code or "").split(":", 1)[0].strip()
    return FIREBASE_ERROR_MESSAGES.get(key, FALLBACK_MESSAGE)


class FirebaseIdentityProvider(IdentityProvider):
    """Email/password accounts via the Firebase Identity Toolkit REST API."""

    def __init__(self, api_key: str, *, timeout: float = 15.0, session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self._current_user: Optional[AuthUser] = None

    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{IDENTITY_TOOLKIT_URL}/{endpoint}"
        try:
            response = self.session.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("identity provider request %s failed: %s", endpoint, exc)
            raise AuthError("Unable to reach the authentication service.") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            code = ""
            if isinstance(body, dict):
                code = str((body.get("error") or {}).get("message") or "")
            logger.info("identity provider rejected %s: %s", endpoint, code or response.status_code)
            raise AuthError(firebase_error_message(code))
        return body if isinstance(body, dict) else {}

    def register(self, email: str, password: str, display_name: Optional[str] = None) -> AuthUser:
        body = self._post("accounts:signUp", {"email": email, "password": password, "returnSecureToken": True})
        name = None
        if display_name:
            updated = self._post(
                "accounts:update",
                {"idToken": body.get("idToken"), "displayName": display_name, "returnSecureToken": False},
            )
            name = updated.get("displayName") or display_name
        user = AuthUser(uid=str(body.get("localId", "")), email=str(body.get("email") or email), display_name=name)
        self._current_user = user
        return user

    def sign_in(self, email: str, password: str) -> AuthUser:
        body = self._post("accounts:signInWithPassword", {"email": email, "password": password, "returnSecureToken": True})
        user = AuthUser(
            uid=str(body.get("localId", "")),
            email=str(body.get("email") or email),
            display_name=body.get("displayName") or None,
        )
        self._current_user = user
        return user

    def sign_out(self) -> None:
        self._current_user = None

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._current_user


def build_identity_provider(settings: Settings) -> Optional[IdentityProvider]:
    if not settings.firebase_configured:
        return None
    return FirebaseIdentityProvider(settings.FIREBASE_API_KEY, timeout=settings.FIREBASE_AUTH_TIMEOUT)


def submit_support(
    provider: Optional[IdentityProvider],
    mode: str,
    email: str,
    password: str,
    name: str = "",
) -> SupportOutcome:
    """Run the Statement of Intent form: register or sign in, never raises AuthError."""
    if provider is None:
        return SupportOutcome(error=NOT_CONFIGURED_MESSAGE)

    email = (email or "").strip()
    if not email or not password:
        return SupportOutcome(error=MISSING_CREDENTIALS_MESSAGE)

    try:
        if mode == REGISTER:
            user = provider.register(email, password, (name or "").strip() or None)
            return SupportOutcome(user=user, message=REGISTERED_MESSAGE)
        user = provider.sign_in(email, password)
        return SupportOutcome(user=user, message=WELCOME_BACK_MESSAGE)
    except AuthError as exc:
        return SupportOutcome(error=str(exc) or FALLBACK_MESSAGE)
