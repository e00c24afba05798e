from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from siwe_auth.core.config import Settings


def _connect_args(database_url: str, timeout_seconds: float) -> dict:
    backend = make_url(database_url).get_backend_name()
    if backend == "sqlite":
        return {"check_same_thread": False, "timeout": timeout_seconds}
    if backend == "postgresql":
        timeout_ms = int(timeout_seconds * 1000)
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": f"-c statement_timeout={timeout_ms}",
        }
    return {}


def build_engine(settings: Settings) -> Engine:
    url = make_url(settings.database_url)
    kwargs = {
        "pool_pre_ping": True,
        "connect_args": _connect_args(settings.database_url, settings.store_timeout_seconds),
    }
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # one shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_timeout"] = settings.store_timeout_seconds
    return create_engine(settings.database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
