"""
Session Token Utilities

Stateless session tokens (HS256 JWT) that carry the authenticated wallet
address and its handle.

Claims (version 1):
- sub: EIP-55 wallet address
- handle: profile handle, null while resolution is pending
- iat: issued at (unix seconds)
- exp: expiry (unix seconds), iat + max_age
- ver: claims layout version
Any other claim is ignored on read.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

import jwt
from web3 import Web3

from siwe_auth.core.errors import InvalidToken, StorageError

if TYPE_CHECKING:
    from siwe_auth.services.account_resolver import AccountResolver

logger = logging.getLogger(__name__)

CLAIMS_VERSION = 1


class SessionOutcome(str, Enum):
    ISSUED = "issued"
    DENIED = "denied"
    REFRESHED = "refreshed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class SessionClaims:
    address: str
    handle: Optional[str]
    issued_at: datetime
    expires_at: datetime
    version: int = CLAIMS_VERSION


@dataclass(frozen=True)
class SessionResult:
    outcome: SessionOutcome
    claims: Optional[SessionClaims] = None
    token: Optional[str] = None


class SessionTokenService:
    """Mints and reads signed session tokens with a fixed validity window."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        max_age: timedelta = timedelta(days=90),
    ):
        if not secret:
            raise ValueError("session secret is required")
        self._secret = secret
        self.algorithm = algorithm
        self.max_age = max_age

    def issue(self, address: str, handle: Optional[str], now: Optional[datetime] = None) -> str:
        """
        Create a session token for an authenticated address.

        Args:
            address: Verified wallet address
            handle: Resolved handle, or None if resolution is still pending
            now: Issue time (defaults to current UTC time)

        Returns:
            Encoded JWT string
        """
        if not address:
            raise ValueError("address is required")

        now = now or datetime.now(timezone.utc)
        return self._encode(Web3.to_checksum_address(address), handle, now, now + self.max_age)

    def _encode(self, address: str, handle: Optional[str], issued_at: datetime, expires_at: datetime) -> str:
        payload = {
            "sub": address,
            "handle": handle,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "ver": CLAIMS_VERSION,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def read(self, token: Optional[str], now: Optional[datetime] = None) -> SessionClaims:
        """
        Validate a session token and return its claims.

        Raises:
            InvalidToken: On a missing token, bad signature, expiry or a
                payload that does not match the claims layout
        """
        if not token:
            raise InvalidToken("Missing token")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                # expiry is checked below against the caller's clock
                options={"require": ["sub", "iat", "exp"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(f"Token rejected: {type(exc).__name__}") from exc

        if payload.get("ver") != CLAIMS_VERSION:
            raise InvalidToken("Unsupported claims version")

        address = payload["sub"]
        if not isinstance(address, str) or not Web3.is_address(address):
            raise InvalidToken("Invalid subject")

        handle = payload.get("handle")
        if handle is not None and (not isinstance(handle, str) or not handle):
            raise InvalidToken("Invalid handle claim")

        iat, exp = payload["iat"], payload["exp"]
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (iat, exp)):
            raise InvalidToken("Invalid time claims")

        now = now or datetime.now(timezone.utc)
        if now.timestamp() > exp:
            raise InvalidToken("Token expired")

        return SessionClaims(
            address=Web3.to_checksum_address(address),
            handle=handle,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )

    def refresh(self, claims: SessionClaims, resolver: "AccountResolver") -> SessionResult:
        """
        Fill in a missing handle claim from the account store.

        The refreshed token keeps the original expiry window. A store failure
        leaves the session valid with the handle still pending.
        """
        if claims.handle:
            return SessionResult(SessionOutcome.UNCHANGED, claims)

        try:
            handle = resolver.resolve_handle(claims.address)
        except StorageError:
            logger.warning(
                "Handle refresh failed, session kept without handle",
                extra={"address": claims.address},
            )
            return SessionResult(SessionOutcome.UNCHANGED, claims)

        refreshed = SessionClaims(
            address=claims.address,
            handle=handle,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )
        token = self._encode(refreshed.address, handle, refreshed.issued_at, refreshed.expires_at)
        logger.info("Session handle refreshed", extra={"address": claims.address, "handle": handle})
        return SessionResult(SessionOutcome.REFRESHED, refreshed, token)
