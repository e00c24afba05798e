from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from siwe_auth.core.container import ServiceContainer
from siwe_auth.core.deps import get_auth_service, get_container, get_current_claims
from siwe_auth.core.security import clear_session_cookie, set_nonce_cookie, set_session_cookie
from siwe_auth.schemas.siwe import SessionResponse, SiweLoginRequest, SiweNonceResponse
from siwe_auth.services.auth_service import AuthenticationService
from siwe_auth.services.session_tokens import SessionClaims

router = APIRouter()


# -----------------------------
# SIWE (EIP-4361) AUTH
# -----------------------------

@router.get("/auth/siwe/nonce", response_model=SiweNonceResponse)
def siwe_nonce(response: Response, container: ServiceContainer = Depends(get_container)):
    nonce = container.nonces.issue()
    set_nonce_cookie(response, container.settings, nonce)
    return SiweNonceResponse(nonce=nonce)


@router.post("/auth/siwe/login", response_model=SessionResponse)
def siwe_login(
    payload: SiweLoginRequest,
    request: Request,
    response: Response,
    auth: AuthenticationService = Depends(get_auth_service),
    container: ServiceContainer = Depends(get_container),
):
    settings = container.settings
    session_nonce = request.cookies.get(settings.nonce_cookie_name)

    result = auth.sign_in(payload.message, payload.signature, session_nonce)

    if not result.ok:
        # same answer for every failure reason
        denied = JSONResponse(status_code=401, content={"detail": "Sign-in failed"})
        denied.delete_cookie(settings.nonce_cookie_name)
        return denied

    # the nonce is spent
    response.delete_cookie(settings.nonce_cookie_name)

    set_session_cookie(response, settings, result.token)
    return SessionResponse(address=result.claims.address, handle=result.claims.handle)


@router.post("/auth/signout", status_code=204)
def signout(container: ServiceContainer = Depends(get_container)):
    # stateless tokens stay valid until expiry; the client just drops the cookie
    response = Response(status_code=204)
    clear_session_cookie(response, container.settings)
    return response


@router.get("/auth/session", response_model=SessionResponse)
def session(claims: SessionClaims = Depends(get_current_claims)):
    return SessionResponse(address=claims.address, handle=claims.handle)
