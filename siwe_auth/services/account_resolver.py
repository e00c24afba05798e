"""
Account Resolver
Maps a verified wallet address to its profile row, provisioning the row and
its handle on first use.

The unique constraints on users.address and users.handle decide races:
an insert or backfill that loses is rolled back and the row is read again.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from web3 import Web3

from siwe_auth.core.errors import StorageError
from siwe_auth.models.user import User

logger = logging.getLogger(__name__)


def handle_candidates(address: str, length: int = 6) -> Iterator[str]:
    """
    Yield handle candidates for an address, shortest first.

    Suffixes of the lowercase hex grow two characters at a time; the last
    one is the full 40-char hex, unique because addresses are unique.
    """
    hex_part = address[2:].lower()
    size = length
    while size < len(hex_part):
        yield hex_part[-size:]
        size += 2
    yield hex_part


class AccountResolver:
    """Service that resolves (and provisions) accounts by address."""

    def __init__(self, db: Session, handle_length: int = 6):
        self.db = db
        self.handle_length = handle_length

    def resolve_handle(self, address: str) -> str:
        """
        Return the handle for an address, creating the account if needed.

        Args:
            address: Wallet address in any case

        Returns:
            Non-empty unique handle

        Raises:
            StorageError: If the store fails or no candidate could be claimed
        """
        return self.get_or_create(address).handle

    def get_or_create(self, address: str) -> User:
        """Return the account for an address with its handle assigned."""
        address = Web3.to_checksum_address(address)
        try:
            return self._resolve(address)
        except StorageError:
            raise
        except SQLAlchemyError as exc:
            self._rollback()
            logger.error(
                "Account resolution failed",
                extra={"address": address, "error": type(exc).__name__},
            )
            raise StorageError("Account store unavailable") from exc

    def get_by_address(self, address: str) -> Optional[User]:
        return self.db.get(User, Web3.to_checksum_address(address), populate_existing=True)

    def _resolve(self, address: str) -> User:
        for candidate in handle_candidates(address, self.handle_length):
            user = self.get_by_address(address)
            if user is not None and user.handle:
                return user

            if user is None:
                claimed = self._try_insert(address, candidate)
            else:
                claimed = self._try_backfill(address, candidate)

            # re-read: we either won, or another request did
            user = self.get_by_address(address)
            if user is not None and user.handle:
                if claimed:
                    logger.info(
                        "Handle assigned",
                        extra={"address": address, "handle": user.handle},
                    )
                return user

            logger.info(
                "Handle candidate taken, trying a longer one",
                extra={"address": address, "candidate": candidate},
            )

        raise StorageError(f"Could not assign a handle to {address}")

    def _try_insert(self, address: str, handle: str) -> bool:
        now = datetime.utcnow()
        self.db.add(User(address=address, handle=handle, created_at=now, updated_at=now))
        try:
            self.db.commit()
        except IntegrityError:
            # address inserted concurrently, or handle already used by another address
            self.db.rollback()
            return False
        return True

    def _try_backfill(self, address: str, handle: str) -> bool:
        stmt = (
            update(User)
            .where(User.address == address, User.handle.is_(None))
            .values(handle=handle, updated_at=datetime.utcnow())
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        return result.rowcount == 1

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")

    def find_by_handle(self, handle: str) -> Optional[User]:
        try:
            return self.db.scalars(select(User).where(User.handle == handle)).first()
        except SQLAlchemyError as exc:
            self._rollback()
            raise StorageError("Account store unavailable") from exc
