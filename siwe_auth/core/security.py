from typing import Optional

from fastapi import Request, Response

from siwe_auth.core.config import Settings


def extract_token(request: Request, cookie_name: str) -> Optional[str]:
    """Session token from the session cookie, else from "Authorization: Bearer"."""
    token = request.cookies.get(cookie_name)
    if token:
        return token

    authorization = request.headers.get("authorization", "").strip()
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def set_nonce_cookie(response: Response, settings: Settings, nonce: str) -> None:
    response.set_cookie(
        settings.nonce_cookie_name,
        nonce,
        max_age=settings.siwe_nonce_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
