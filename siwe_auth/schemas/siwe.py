# siwe_auth/schemas/siwe.py
from typing import Optional

from pydantic import BaseModel, Field


class SiweLoginRequest(BaseModel):
    message: str = Field(..., description="EIP-4361 message text")
    signature: str = Field(..., description="Hex personal_sign signature")


class SiweNonceResponse(BaseModel):
    nonce: str


class SessionResponse(BaseModel):
    address: str
    # None while handle resolution is pending
    handle: Optional[str] = None
