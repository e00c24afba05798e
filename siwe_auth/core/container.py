"""
Service container built once per application from Settings.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import redis
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from siwe_auth.core.config import Settings
from siwe_auth.db.session import build_engine, build_session_factory
from siwe_auth.services.blob_store import BlobStore, LocalBlobStore
from siwe_auth.services.route_guard import RouteGuard
from siwe_auth.services.session_tokens import SessionTokenService
from siwe_auth.services.siwe_nonce_store import NonceStore, build_redis_client


@dataclass
class ServiceContainer:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    nonces: NonceStore
    tokens: SessionTokenService
    guard: RouteGuard
    blobs: BlobStore


def build_container(
    settings: Settings,
    engine: Optional[Engine] = None,
    redis_client: Optional[redis.Redis] = None,
    blobs: Optional[BlobStore] = None,
) -> ServiceContainer:
    engine = engine or build_engine(settings)
    redis_client = redis_client or build_redis_client(
        settings.redis_url, settings.store_timeout_seconds
    )
    tokens = SessionTokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_alg,
        max_age=timedelta(days=settings.session_max_age_days),
    )
    return ServiceContainer(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        nonces=NonceStore(redis_client, ttl_seconds=settings.siwe_nonce_ttl_seconds),
        tokens=tokens,
        guard=RouteGuard(settings.protected_paths, settings.landing_path, tokens),
        blobs=blobs or LocalBlobStore(settings.blob_root, settings.blob_public_base_url),
    )
