"""
Error taxonomy for wallet sign-in, sessions and profile storage.
"""
from enum import Enum


class SiweAuthError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class MalformedMessage(SiweAuthError):
    """Raised when a sign-in message cannot be parsed."""

    def __init__(self, message: str = "Malformed sign-in message"):
        super().__init__(message, code="MALFORMED_MESSAGE")


class VerificationFailure(str, Enum):
    DOMAIN_MISMATCH = "DomainMismatch"
    NONCE_MISMATCH = "NonceMismatch"
    SIGNATURE_INVALID = "SignatureInvalid"
    EXPIRED = "Expired"


class VerificationError(SiweAuthError):
    """Raised when a parsed message fails verification."""

    def __init__(self, reason: VerificationFailure, detail: str = ""):
        self.reason = reason
        message = f"Verification failed: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, code="VERIFICATION_ERROR")


class StorageError(SiweAuthError):
    """Raised when the profile store, nonce store or blob store fails."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, code="STORAGE_ERROR")


class InvalidToken(SiweAuthError):
    """Raised when a session token is expired, forged or malformed."""

    def __init__(self, message: str = "Invalid session token"):
        super().__init__(message, code="INVALID_TOKEN")


class ProfileValidationError(SiweAuthError):
    """Raised when profile update input is rejected."""

    def __init__(self, field: str, reason: str):
        self.field = field
        super().__init__(
            f"Validation failed for {field}: {reason}",
            code="PROFILE_VALIDATION_ERROR",
        )
