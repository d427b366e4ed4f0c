"""Session cookie signing and cookie helpers."""

from fastapi import Response
from itsdangerous import BadSignature, URLSafeSerializer

from backend.app.core.config import settings

_SALT = "lentexhibit-session"


def _serializer() -> URLSafeSerializer:
    return URLSafeSerializer(settings.secret_key, salt=_SALT)


def sign_session_id(session_id: str) -> str:
    """Return the cookie value carrying a signed session id."""
    return _serializer().dumps(session_id)


def unsign_session_id(cookie_value: str | None) -> str | None:
    """
    Recover the session id from a cookie value.

    Returns None for a missing, tampered or foreign cookie. Expiry is tracked
    by the session record, not the signature.
    """
    if not cookie_value:
        return None
    try:
        session_id = _serializer().loads(cookie_value)
    except BadSignature:
        return None
    return session_id if isinstance(session_id, str) else None


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sign_session_id(session_id),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        path="/",
    )
