"""
Account sign-up and sign-in against Firebase Auth.

Accounts are created with firebase-admin. Password sign-in has no admin-SDK
equivalent, so it goes through the Identity Toolkit REST endpoint with the
project's web API key.
"""
import logging
from collections import namedtuple

import requests
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from . import config
from .errors import AuthError

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"
REQUEST_TIMEOUT = 15

AuthUser = namedtuple("AuthUser", ["uid", "email", "display_name", "id_token"])

_FRIENDLY_ERRORS = {
    "EMAIL_NOT_FOUND": "No account found for this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Incorrect email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
}


def check_invite_code(code, required=None):
    required = required or config.INVITE_CODE
    return (code or "").strip().upper() == required.upper()


def validate_sign_up(name, password, confirm_password, invite_code):
    """Raise ``AuthError`` with the first problem in a sign-up form."""
    if not check_invite_code(invite_code):
        raise AuthError("Invalid Invite Code. Access Denied.")
    if password != confirm_password:
        raise AuthError("Passwords do not match")
    if not (name or "").strip():
        raise AuthError("Please enter your name")


def sign_in(email, password, api_key=None, http=None):
    api_key = api_key or config.FIREBASE_WEB_API_KEY
    if not api_key:
        raise AuthError("Sign-in is not configured.")
    http = http or requests
    try:
        response = http.post(
            SIGN_IN_URL,
            params={"key": api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
            timeout=REQUEST_TIMEOUT,
        )
        payload = response.json()
    except ValueError as e:
        # requests raises a ValueError subclass for non-JSON bodies such as 5xx pages
        logger.error("Sign-in returned an unreadable response: %s", e)
        raise AuthError("Sign-in failed.") from e
    except requests.RequestException as e:
        logger.error("Sign-in request failed: %s", e)
        raise AuthError("Could not reach the sign-in service.") from e

    if response.status_code != 200:
        code = payload.get("error", {}).get("message", "")
        # Messages look like "TOO_MANY_ATTEMPTS_TRY_LATER : details"
        code = code.split(" ")[0]
        logger.info("Sign-in rejected for %s: %s", email, code)
        raise AuthError(_FRIENDLY_ERRORS.get(code, "Sign-in failed."))

    return AuthUser(
        uid=payload["localId"],
        email=payload.get("email", email),
        display_name=payload.get("displayName") or "",
        id_token=payload.get("idToken", ""),
    )


def sign_up(name, email, password, confirm_password, invite_code, api_key=None, http=None):
    """Create an account behind the invite gate, then sign it in."""
    validate_sign_up(name, password, confirm_password, invite_code)
    try:
        firebase_auth.create_user(email=email, password=password, display_name=name.strip())
    except firebase_auth.EmailAlreadyExistsError as e:
        raise AuthError("An account with this email already exists.") from e
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.error("Account creation failed for %s: %s", email, e)
        raise AuthError(str(e) or "Failed to create account.") from e
    logger.info("Created account for %s", email)
    return sign_in(email, password, api_key=api_key, http=http)


def verify_token(id_token):
    """Decode a Firebase ID token and return its uid."""
    try:
        decoded = firebase_auth.verify_id_token(id_token)
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError) as e:
        raise AuthError("Session expired. Please sign in again.") from e
    return decoded["uid"]
