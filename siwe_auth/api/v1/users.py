from fastapi import APIRouter, Depends, HTTPException

from siwe_auth.core.deps import get_profile_service
from siwe_auth.schemas.profile import PublicProfileResponse
from siwe_auth.services.profile_service import ProfileService

router = APIRouter()


@router.get("/users/{handle}", response_model=PublicProfileResponse)
def get_user_by_handle(handle: str, service: ProfileService = Depends(get_profile_service)):
    user = service.get_public_profile(handle)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return PublicProfileResponse.model_validate(user)


@router.get("/users/", include_in_schema=False)
def get_user_without_handle():
    raise HTTPException(status_code=400, detail="Invalid handle format")
