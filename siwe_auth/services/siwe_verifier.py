"""
SIWE Verifier
Checks a parsed sign-in message against the server's expectations.

Checks run in a fixed order and stop at the first failure:
1. domain (and origin, when configured)
2. nonce
3. signature recovery against the claimed address
4. expiration / not-before window
"""
from __future__ import annotations

import hmac
from datetime import datetime, timezone
from typing import Optional

from siwe_auth.core.errors import VerificationError, VerificationFailure
from siwe_auth.services.siwe import SiweMessage, recover_address


def verify_siwe_message(
    message: SiweMessage,
    signature: str,
    expected_nonce: Optional[str],
    expected_domain: str,
    expected_origin: Optional[str] = None,
    now: Optional[datetime] = None,
) -> None:
    """
    Verify a sign-in message. Pure, performs no I/O.

    Args:
        message: Parsed message as submitted by the client
        signature: Hex encoded 65-byte personal_sign signature
        expected_nonce: Nonce issued to this client, None if it has none
        expected_domain: Host the message must be bound to
        expected_origin: Optional origin the message URI must start with
        now: Reference time for the validity window (defaults to utcnow)

    Raises:
        VerificationError: With the reason of the first failing check
    """
    if message.domain != expected_domain:
        raise VerificationError(VerificationFailure.DOMAIN_MISMATCH, message.domain)
    if expected_origin and not message.uri.startswith(expected_origin):
        raise VerificationError(VerificationFailure.DOMAIN_MISMATCH, "uri outside origin")

    if not expected_nonce or not hmac.compare_digest(
        message.nonce.encode(), expected_nonce.encode()
    ):
        raise VerificationError(VerificationFailure.NONCE_MISMATCH)

    if not isinstance(signature, str) or not signature:
        raise VerificationError(VerificationFailure.SIGNATURE_INVALID, "empty signature")
    try:
        recovered = recover_address(message.prepare_message(), signature)
    except Exception as exc:
        # eth_account raises a mix of ValueError/TypeError/BadSignature for junk input
        raise VerificationError(
            VerificationFailure.SIGNATURE_INVALID, type(exc).__name__
        ) from exc
    if recovered.lower() != message.address.lower():
        raise VerificationError(VerificationFailure.SIGNATURE_INVALID, "address mismatch")

    now = now or datetime.now(timezone.utc)
    expires = message.expiration_time_dt
    if expires is not None and now >= expires:
        raise VerificationError(VerificationFailure.EXPIRED, "expired")
    not_before = message.not_before_dt
    if not_before is not None and now < not_before:
        raise VerificationError(VerificationFailure.EXPIRED, "not yet valid")
