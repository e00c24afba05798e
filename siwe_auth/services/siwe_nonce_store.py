# siwe_auth/services/siwe_nonce_store.py
from __future__ import annotations

import logging

import redis

from siwe_auth.core.errors import StorageError
from siwe_auth.services.siwe import generate_nonce

logger = logging.getLogger(__name__)


def nonce_key(nonce: str) -> str:
    return f"siwe:nonce:{nonce}"


def build_redis_client(redis_url: str, timeout_seconds: float) -> redis.Redis:
    return redis.Redis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=timeout_seconds,
        socket_connect_timeout=timeout_seconds,
    )


class NonceStore:
    """Single-use SIWE nonces kept in Redis with a TTL."""

    def __init__(self, client: redis.Redis, ttl_seconds: int = 300):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def issue(self) -> str:
        nonce = generate_nonce()
        try:
            # value = "1" just means "exists"
            self.client.setex(nonce_key(nonce), self.ttl_seconds, "1")
        except redis.RedisError as exc:
            logger.error("Nonce store write failed", extra={"error": str(exc)})
            raise StorageError("Nonce store unavailable") from exc
        return nonce

    def consume(self, nonce: str | None) -> bool:
        """
        Remove a nonce and report whether it was still live.

        GETDEL makes the check-and-delete atomic, so two requests racing
        with the same nonce cannot both see it.
        """
        if not nonce:
            return False
        try:
            value = self.client.getdel(nonce_key(nonce))
        except redis.RedisError as exc:
            logger.error("Nonce store read failed", extra={"error": str(exc)})
            raise StorageError("Nonce store unavailable") from exc
        return value is not None
