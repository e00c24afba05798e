"""
Profile API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from siwe_auth.core.deps import get_current_claims, get_profile_service
from siwe_auth.schemas.profile import ProfileResponse, ProfileUpdateResponse
from siwe_auth.services.profile_service import MAX_AVATAR_BYTES, AvatarUpload, ProfileService
from siwe_auth.services.session_tokens import SessionClaims

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    claims: SessionClaims = Depends(get_current_claims),
    service: ProfileService = Depends(get_profile_service),
):
    """
    Get the caller's profile, creating the account and handle on first use.
    """
    user = service.get_profile(claims.address)
    return ProfileResponse.model_validate(user)


@router.post("/profile", response_model=ProfileUpdateResponse)
def update_profile(
    name: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    pfp: Optional[UploadFile] = File(None),
    claims: SessionClaims = Depends(get_current_claims),
    service: ProfileService = Depends(get_profile_service),
):
    """
    Update the caller's profile.

    - **name**: Display name, up to 100 characters
    - **bio**: Bio, up to 500 characters
    - **pfp**: Optional avatar (jpeg, png, gif or webp, up to 5MB)
    """
    avatar = None
    if pfp is not None and pfp.filename:
        # one byte over the limit is enough to reject
        data = pfp.file.read(MAX_AVATAR_BYTES + 1)
        if not data:
            raise HTTPException(status_code=400, detail="Empty avatar file")
        avatar = AvatarUpload(data=data, content_type=pfp.content_type or "")

    user = service.update_profile(claims.address, name=name, bio=bio, avatar=avatar)
    return ProfileUpdateResponse.model_validate(user)
