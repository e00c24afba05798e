from .profile import ProfileResponse, ProfileUpdateResponse, PublicProfileResponse
from .siwe import SessionResponse, SiweLoginRequest, SiweNonceResponse

__all__ = [
    "ProfileResponse",
    "ProfileUpdateResponse",
    "PublicProfileResponse",
    "SessionResponse",
    "SiweLoginRequest",
    "SiweNonceResponse",
]
