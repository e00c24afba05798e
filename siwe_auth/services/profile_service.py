"""
Profile Service
Reads and updates account profiles: display name, bio and avatar.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from siwe_auth.core.errors import ProfileValidationError, StorageError
from siwe_auth.models.user import User
from siwe_auth.services.account_resolver import AccountResolver
from siwe_auth.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_BIO_LENGTH = 500
MAX_AVATAR_BYTES = 5 * 1024 * 1024
AVATAR_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class AvatarUpload:
    data: bytes
    content_type: str


class ProfileService:
    """Service for managing account profiles."""

    def __init__(self, db: Session, resolver: AccountResolver, blobs: BlobStore):
        self.db = db
        self.resolver = resolver
        self.blobs = blobs

    def get_profile(self, address: str) -> User:
        """
        Get the caller's own profile, provisioning account and handle if absent.

        Raises:
            StorageError: If the account store fails
        """
        return self.resolver.get_or_create(address)

    def get_public_profile(self, handle: str) -> Optional[User]:
        """
        Look up a profile by handle.

        Raises:
            ProfileValidationError: If the handle is blank
            StorageError: If the account store fails
        """
        handle = (handle or "").strip()
        if not handle:
            raise ProfileValidationError("handle", "must not be empty")
        return self.resolver.find_by_handle(handle)

    def update_profile(
        self,
        address: str,
        name: Optional[str],
        bio: Optional[str],
        avatar: Optional[AvatarUpload] = None,
    ) -> User:
        """
        Update display name and bio, and replace the avatar when one is given.

        Args:
            address: Authenticated wallet address
            name: New display name (None clears it)
            bio: New bio (None clears it)
            avatar: Optional new avatar image

        Returns:
            Updated User

        Raises:
            ProfileValidationError: If a field or the avatar is rejected
            StorageError: If the blob store or account store fails
        """
        if name is not None and len(name) > MAX_NAME_LENGTH:
            raise ProfileValidationError("name", f"at most {MAX_NAME_LENGTH} characters")
        if bio is not None and len(bio) > MAX_BIO_LENGTH:
            raise ProfileValidationError("bio", f"at most {MAX_BIO_LENGTH} characters")
        if avatar is not None:
            if len(avatar.data) > MAX_AVATAR_BYTES:
                raise ProfileValidationError("pfp", "file size exceeds 5MB limit")
            if avatar.content_type not in AVATAR_EXTENSIONS:
                raise ProfileValidationError("pfp", "invalid file type")

        user = self.resolver.get_or_create(address)
        previous_url = user.avatar_url

        avatar_path = None
        if avatar is not None:
            avatar_path = f"{user.address}/profile.{AVATAR_EXTENSIONS[avatar.content_type]}"
            self.blobs.upload(avatar_path, avatar.data, avatar.content_type)

        try:
            user.display_name = name
            user.bio = bio
            if avatar_path:
                user.avatar_url = self.blobs.public_url(avatar_path)
            user.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as exc:
            self.db.rollback()
            # an upload at a new path would be orphaned
            if avatar_path and self.blobs.public_url(avatar_path) != previous_url:
                self.blobs.remove([avatar_path])
            logger.error("Profile update failed", extra={"address": address, "error": type(exc).__name__})
            raise StorageError("Failed to update profile data") from exc

        if avatar_path:
            self._remove_stale_avatars(user.address, keep=avatar_path)

        logger.info("Profile updated", extra={"address": user.address, "avatar": bool(avatar_path)})
        return user

    def _remove_stale_avatars(self, address: str, keep: str) -> None:
        paths = (f"{address}/profile.{ext}" for ext in AVATAR_EXTENSIONS.values())
        self.blobs.remove(path for path in paths if path != keep)
