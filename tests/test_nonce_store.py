from unittest.mock import Mock

import pytest
import redis

from siwe_auth.core.errors import StorageError
from siwe_auth.services.siwe_nonce_store import NonceStore, nonce_key


class TestNonceStore:
    """Tests for SIWE nonce store using Redis"""

    def test_issue_stores_nonce_with_ttl(self):
        # Arrange
        mock_redis = Mock()
        store = NonceStore(mock_redis, ttl_seconds=300)

        # Act
        nonce = store.issue()

        # Assert
        mock_redis.setex.assert_called_once_with(nonce_key(nonce), 300, "1")
        assert nonce_key(nonce) == f"siwe:nonce:{nonce}"

    def test_consume_valid_nonce(self):
        # Arrange
        mock_redis = Mock()
        mock_redis.getdel.return_value = "1"
        store = NonceStore(mock_redis)

        # Act
        result = store.consume("validNonce123")

        # Assert
        assert result is True
        mock_redis.getdel.assert_called_once_with("siwe:nonce:validNonce123")

    def test_consume_unknown_nonce(self):
        mock_redis = Mock()
        mock_redis.getdel.return_value = None
        store = NonceStore(mock_redis)

        assert store.consume("expiredNonce1") is False

    def test_consume_missing_nonce_skips_redis(self):
        mock_redis = Mock()
        store = NonceStore(mock_redis)

        assert store.consume(None) is False
        assert store.consume("") is False
        mock_redis.getdel.assert_not_called()

    def test_consume_prevents_replay(self, fake_redis):
        # Arrange
        store = NonceStore(fake_redis)
        nonce = store.issue()

        # Act
        first = store.consume(nonce)
        second = store.consume(nonce)

        # Assert
        assert first is True
        assert second is False

    def test_issue_redis_failure_raises_storage_error(self):
        mock_redis = Mock()
        mock_redis.setex.side_effect = redis.ConnectionError("down")
        store = NonceStore(mock_redis)

        with pytest.raises(StorageError):
            store.issue()

    def test_consume_timeout_raises_storage_error(self):
        mock_redis = Mock()
        mock_redis.getdel.side_effect = redis.TimeoutError("slow")
        store = NonceStore(mock_redis)

        with pytest.raises(StorageError):
            store.consume("someNonce123")
