"""
Authentication Service
Turns a submitted {message, signature} credential into a session token.

Every failure (malformed input, failed verification, storage trouble) is
logged with its reason and reported as DENIED; a token exists only when
parsing, nonce consumption, verification, handle resolution and issuance
have all succeeded.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from siwe_auth.core.errors import (
    MalformedMessage,
    StorageError,
    VerificationError,
    VerificationFailure,
)
from siwe_auth.services.account_resolver import AccountResolver
from siwe_auth.services.session_tokens import SessionClaims, SessionOutcome, SessionTokenService
from siwe_auth.services.siwe import load_siwe_message
from siwe_auth.services.siwe_nonce_store import NonceStore
from siwe_auth.services.siwe_verifier import verify_siwe_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    outcome: SessionOutcome
    token: Optional[str] = None
    claims: Optional[SessionClaims] = None
    # for logs only, never shown to the client
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == SessionOutcome.ISSUED


class AuthenticationService:
    def __init__(
        self,
        nonces: NonceStore,
        tokens: SessionTokenService,
        resolver: AccountResolver,
        expected_domain: str,
        expected_origin: Optional[str] = None,
    ):
        self.nonces = nonces
        self.tokens = tokens
        self.resolver = resolver
        self.expected_domain = expected_domain
        self.expected_origin = expected_origin

    def sign_in(self, raw_message: str, signature: str, session_nonce: Optional[str]) -> SignInResult:
        """
        Authenticate a credential.

        Args:
            raw_message: EIP-4361 text (or its JSON field object)
            signature: Hex personal_sign signature
            session_nonce: Nonce previously issued to this client

        Returns:
            SignInResult with outcome ISSUED and a token, or DENIED and a reason
        """
        try:
            message = load_siwe_message(raw_message)
        except MalformedMessage as exc:
            return self._deny("MalformedMessage", detail=exc.message)

        try:
            # single use: burnt whether or not the rest succeeds
            live = self.nonces.consume(session_nonce)
        except StorageError as exc:
            return self._deny("StorageError", address=message.address, detail=exc.message)
        expected_nonce = session_nonce if live else None

        try:
            verify_siwe_message(
                message,
                signature,
                expected_nonce=expected_nonce,
                expected_domain=self.expected_domain,
                expected_origin=self.expected_origin,
            )
        except VerificationError as exc:
            if exc.reason == VerificationFailure.NONCE_MISMATCH and session_nonce and not live:
                detail = "nonce expired or already used"
            else:
                detail = exc.message
            return self._deny(exc.reason.value, address=message.address, detail=detail)

        try:
            handle = self.resolver.resolve_handle(message.address)
        except StorageError as exc:
            return self._deny("StorageError", address=message.address, detail=exc.message)

        token = self.tokens.issue(message.address, handle)
        claims = self.tokens.read(token)
        logger.info("Sign-in succeeded", extra={"address": claims.address, "handle": handle})
        return SignInResult(SessionOutcome.ISSUED, token=token, claims=claims)

    def _deny(self, reason: str, address: Optional[str] = None, detail: str = "") -> SignInResult:
        logger.warning(
            "Sign-in rejected",
            extra={"reason": reason, "address": address, "detail": detail},
        )
        return SignInResult(SessionOutcome.DENIED, reason=reason)
