import sys
from pathlib import Path

import pytest
from eth_account import Account
from fastapi.testclient import TestClient

# Add the parent directory to the path so we can import siwe_auth modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from siwe_auth.core.config import Settings
from siwe_auth.core.container import build_container
from siwe_auth.db.base import Base
from siwe_auth.db.session import build_engine, build_session_factory
from siwe_auth.main import create_app
from siwe_auth.models import user  # noqa: F401  ensure models are imported
from tests.helpers import APP_DOMAIN, APP_ORIGIN, OTHER_PRIVATE_KEY, PRIVATE_KEY, FakeRedis


@pytest.fixture
def account():
    return Account.from_key(PRIVATE_KEY)


@pytest.fixture
def other_account():
    return Account.from_key(OTHER_PRIVATE_KEY)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+pysqlite:///:memory:",
        jwt_secret="test-secret-which-is-long-enough-for-hs256",
        app_domain=APP_DOMAIN,
        app_origin=APP_ORIGIN,
        cookie_secure=False,
        blob_root=str(tmp_path / "media"),
        blob_public_base_url="/media",
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def container(settings, engine, fake_redis):
    return build_container(settings, engine=engine, redis_client=fake_redis)


@pytest.fixture
def app(settings, container):
    return create_app(settings, container=container)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
