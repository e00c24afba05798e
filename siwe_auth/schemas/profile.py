"""
Profile Schemas for API Response
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    """Caller's own profile."""
    address: str
    handle: Optional[str] = None
    name: Optional[str] = Field(None, validation_alias="display_name")
    bio: Optional[str] = None
    pfp_url: Optional[str] = Field(None, validation_alias="avatar_url")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ProfileUpdateResponse(BaseModel):
    name: Optional[str] = Field(None, validation_alias="display_name")
    bio: Optional[str] = None
    pfp_url: Optional[str] = Field(None, validation_alias="avatar_url")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PublicProfileResponse(BaseModel):
    """Public subset of a profile, looked up by handle."""
    address: str
    handle: str
    name: Optional[str] = Field(None, validation_alias="display_name")
    bio: Optional[str] = None
    pfp_url: Optional[str] = Field(None, validation_alias="avatar_url")
    created_at: datetime
    tier: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
