from typing import Generator

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from siwe_auth.core.container import ServiceContainer
from siwe_auth.core.errors import InvalidToken
from siwe_auth.core.security import extract_token, set_session_cookie
from siwe_auth.services.account_resolver import AccountResolver
from siwe_auth.services.auth_service import AuthenticationService
from siwe_auth.services.profile_service import ProfileService
from siwe_auth.services.session_tokens import SessionClaims, SessionOutcome


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_db(container: ServiceContainer = Depends(get_container)) -> Generator[Session, None, None]:
    db = container.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_account_resolver(
    db: Session = Depends(get_db),
    container: ServiceContainer = Depends(get_container),
) -> AccountResolver:
    return AccountResolver(db, handle_length=container.settings.handle_length)


def get_auth_service(
    resolver: AccountResolver = Depends(get_account_resolver),
    container: ServiceContainer = Depends(get_container),
) -> AuthenticationService:
    return AuthenticationService(
        nonces=container.nonces,
        tokens=container.tokens,
        resolver=resolver,
        expected_domain=container.settings.app_domain,
        expected_origin=container.settings.app_origin,
    )


def get_profile_service(
    db: Session = Depends(get_db),
    resolver: AccountResolver = Depends(get_account_resolver),
    container: ServiceContainer = Depends(get_container),
) -> ProfileService:
    return ProfileService(db, resolver, container.blobs)


def get_current_claims(
    request: Request,
    response: Response,
    resolver: AccountResolver = Depends(get_account_resolver),
    container: ServiceContainer = Depends(get_container),
) -> SessionClaims:
    """
    Claims of the authenticated caller.

    A session minted before its handle was known gets the handle resolved
    here and a refreshed cookie, without signing in again.
    """
    token = extract_token(request, container.settings.session_cookie_name)
    try:
        claims = container.tokens.read(token)
    except InvalidToken:
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = container.tokens.refresh(claims, resolver)
    if result.outcome == SessionOutcome.REFRESHED:
        set_session_cookie(response, container.settings, result.token)
    return result.claims
