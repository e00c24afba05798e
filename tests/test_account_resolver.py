import threading
from unittest.mock import Mock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from siwe_auth.core.config import Settings
from siwe_auth.core.errors import StorageError
from siwe_auth.db.base import Base
from siwe_auth.db.session import build_engine, build_session_factory
from siwe_auth.models.user import User
from siwe_auth.services.account_resolver import AccountResolver, handle_candidates

ADDRESS = "0xAb5801a7D398351b8bE11C439e05C5B3259aeC9B"
OTHER_ADDRESS = "0x1111111111111111111111111111111111111111"


class TestHandleCandidates:
    """Tests for the handle candidate sequence"""

    def test_candidates_grow_from_address_suffix(self):
        candidates = list(handle_candidates(ADDRESS, 6))

        assert candidates[0] == "9aec9b"
        assert candidates[1] == "259aec9b"
        assert candidates[-1] == ADDRESS[2:].lower()
        assert [len(c) for c in candidates] == list(range(6, 41, 2))

    def test_candidates_respect_configured_length(self):
        assert next(handle_candidates(ADDRESS, 10)) == "b3259aec9b"


class TestAccountResolver:
    """Tests for account provisioning and handle assignment"""

    def test_new_address_gets_account_and_handle(self, db):
        resolver = AccountResolver(db)

        handle = resolver.resolve_handle(ADDRESS.lower())

        user = db.get(User, ADDRESS)
        assert handle == "9aec9b"
        assert user is not None
        assert user.handle == handle

    def test_resolve_is_idempotent(self, db):
        resolver = AccountResolver(db)

        first = resolver.resolve_handle(ADDRESS)
        second = resolver.resolve_handle(ADDRESS)

        assert first == second
        assert db.scalar(select(func.count()).select_from(User)) == 1

    def test_existing_row_without_handle_is_backfilled(self, db):
        db.add(User(address=ADDRESS, handle=None, display_name="Alice"))
        db.commit()

        handle = AccountResolver(db).resolve_handle(ADDRESS)

        user = db.get(User, ADDRESS, populate_existing=True)
        assert handle == "9aec9b"
        assert user.handle == "9aec9b"
        assert user.display_name == "Alice"

    def test_taken_handle_falls_back_to_longer_suffix(self, db):
        db.add(User(address=OTHER_ADDRESS, handle="9aec9b"))
        db.commit()

        handle = AccountResolver(db).resolve_handle(ADDRESS)

        assert handle == "259aec9b"
        assert db.get(User, OTHER_ADDRESS).handle == "9aec9b"

    def test_backfill_falls_back_when_handle_taken(self, db):
        db.add_all([
            User(address=OTHER_ADDRESS, handle="9aec9b"),
            User(address=ADDRESS, handle=None),
        ])
        db.commit()

        handle = AccountResolver(db).resolve_handle(ADDRESS)

        assert handle == "259aec9b"

    def test_get_or_create_returns_user(self, db):
        user = AccountResolver(db).get_or_create(ADDRESS)

        assert user.address == ADDRESS
        assert user.handle == "9aec9b"
        assert user.created_at is not None

    def test_find_by_handle(self, db):
        resolver = AccountResolver(db)
        resolver.resolve_handle(ADDRESS)

        assert resolver.find_by_handle("9aec9b").address == ADDRESS
        assert resolver.find_by_handle("nobody") is None

    def test_store_failure_raises_storage_error(self):
        mock_db = Mock()
        mock_db.get.side_effect = OperationalError("SELECT", {}, Exception("database is down"))
        resolver = AccountResolver(mock_db)

        with pytest.raises(StorageError):
            resolver.resolve_handle(ADDRESS)

        mock_db.rollback.assert_called()

    def test_find_by_handle_store_failure(self):
        mock_db = Mock()
        mock_db.scalars.side_effect = OperationalError("SELECT", {}, Exception("database is down"))

        with pytest.raises(StorageError):
            AccountResolver(mock_db).find_by_handle("9aec9b")


class TestConcurrentResolution:
    """Concurrent first sign-ins for the same address"""

    @pytest.fixture
    def file_engine(self, tmp_path):
        settings = Settings(
            _env_file=None,
            database_url=f"sqlite+pysqlite:///{tmp_path / 'accounts.db'}",
            jwt_secret="test-secret-which-is-long-enough-for-hs256",
            app_domain="app.example",
            app_origin="https://app.example",
            store_timeout_seconds=30,
        )
        engine = build_engine(settings)
        Base.metadata.create_all(bind=engine)
        yield engine
        engine.dispose()

    def test_parallel_resolves_create_one_account(self, file_engine):
        factory = build_session_factory(file_engine)
        workers = 4
        barrier = threading.Barrier(workers)
        handles = []
        errors = []

        def resolve():
            db = factory()
            try:
                barrier.wait()
                handles.append(AccountResolver(db).resolve_handle(ADDRESS))
            except Exception as exc:
                errors.append(exc)
            finally:
                db.close()

        threads = [threading.Thread(target=resolve) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert handles == ["9aec9b"] * workers
        with factory() as db:
            assert db.scalar(select(func.count()).select_from(User)) == 1
