"""Staff sign-in against the credentials file, with signed session tokens."""
from __future__ import annotations

import logging
import secrets
from typing import Iterable, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from restaurant_app.errors import AuthError

logger = logging.getLogger(__name__)

TOKEN_SALT = "staff-session"


def _serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)


def authenticate(users: Iterable[dict], username: str, password: str) -> dict:
    user = next((u for u in users if u.get("username") == username), None)
    if user is None:
        logger.info("login failed for unknown user %s", username)
        raise AuthError("auth/user-not-found")
    if not secrets.compare_digest(str(user.get("password", "")), password):
        logger.info("login failed for %s", username)
        raise AuthError("auth/wrong-password")
    if user.get("status") == "inactive":
        raise AuthError("auth/user-disabled", status_code=403)
    return user


def issue_token(secret_key: str, user: dict) -> str:
    return _serializer(secret_key).dumps({"username": user["username"], "role": user.get("role")})


def verify_token(secret_key: str, token: str, max_age: int) -> Optional[dict]:
    try:
        return _serializer(secret_key).loads(token, max_age=max_age)
    except SignatureExpired:
        logger.info("expired session token")
        return None
    except BadSignature:
        return None
