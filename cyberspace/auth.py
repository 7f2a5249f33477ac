"""
Identity service client.
Signs in with email/password against the Firebase identity toolkit and
exchanges refresh tokens. Failures surface as AuthError with a short,
human-readable message suitable for the login screen.
"""
import logging
from typing import Any, Dict, Optional

import requests

from .config import HTTP_TIMEOUT, REFRESH_URL, SIGN_IN_URL
from .data_models import Session

logger = logging.getLogger("cyberspace.auth")

_FRIENDLY_ERRORS = {
    "EMAIL_NOT_FOUND": "Email not found",
    "INVALID_PASSWORD": "Invalid password",
    "USER_DISABLED": "Account has been disabled",
    "INVALID_EMAIL": "Invalid email format",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password",
}


class AuthError(Exception):
    """Authentication related errors"""
    pass


def friendly_error(code: str) -> str:
    """Map an identity service error code to a short phrase.

    Unknown codes pass through verbatim.
    """
    return _FRIENDLY_ERRORS.get(code, code)


def _error_message(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    err = body.get("error")
    if isinstance(err, dict) and isinstance(err.get("message"), str):
        return err["message"]
    return None


def sign_in(email: str, password: str, api_key: str, http: Any = requests) -> Session:
    """Authenticate with email and password.

    Returns a Session on success or raises AuthError on failure.
    """
    try:
        resp = http.post(
            SIGN_IN_URL,
            params={"key": api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
            timeout=HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.debug("Sign-in request failed: %s", e)
        raise AuthError(f"Sign-in request failed: {e}") from e

    if resp.status_code != 200:
        logger.debug("Sign-in HTTP %s: %s", resp.status_code, resp.text)
        code = _error_message(resp)
        if code is None:
            raise AuthError(f"auth failed: {resp.text}")
        raise AuthError(friendly_error(code))

    try:
        data: Dict[str, Any] = resp.json()
    except ValueError as e:
        raise AuthError(f"auth failed: {resp.text}") from e

    return Session(
        id_token=data.get("idToken") or "",
        refresh_token=data.get("refreshToken") or "",
        user_id=data.get("localId") or "",
        email=data.get("email") or email,
        username=data.get("displayName") or "",
    )


def refresh_tokens(refresh_token: str, api_key: str, http: Any = requests) -> Dict[str, str]:
    """Use the refresh_token grant to obtain a new ID token.

    Returns {'id_token', 'refresh_token', 'expires_in', 'user_id'} on
    success or raises AuthError on failure.
    """
    try:
        resp = http.post(
            REFRESH_URL,
            params={"key": api_key},
            data={"grant_type": "refresh_token", "refresh_token": refresh_token},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.debug("Refresh token request failed: %s", e)
        raise AuthError(f"Refresh token request failed: {e}") from e

    if resp.status_code != 200:
        logger.debug("Refresh token HTTP %s: %s", resp.status_code, resp.text)
        raise AuthError(f"token refresh failed: {resp.text}")

    try:
        data = resp.json()
    except ValueError as e:
        raise AuthError(f"token refresh failed: {resp.text}") from e

    return {
        "id_token": data.get("id_token") or "",
        "refresh_token": data.get("refresh_token") or "",
        "expires_in": data.get("expires_in") or "",
        "user_id": data.get("user_id") or "",
    }
