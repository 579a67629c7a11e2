"""Tests for item store backends."""

import json
from unittest.mock import MagicMock

import pytest
import redis
from sqlalchemy.exc import OperationalError

from reviewgate.core.errors import UpstreamError
from reviewgate.store.base import store_key
from reviewgate.store.issue_property import IssuePropertyStore, split_key
from reviewgate.store.memory import MemoryItemStore
from reviewgate.store.redis_store import RedisItemStore
from reviewgate.store.sql import SqlItemStore


def test_store_key():
    assert store_key("reviewgate", "participants", "10001") == "reviewgate:participants:10001"


class TestMemoryItemStore:
    """Test the process-local store."""

    def test_get_missing(self):
        assert MemoryItemStore().get("k") is None

    def test_values_are_copied(self):
        """Test callers cannot mutate stored values through references."""
        store = MemoryItemStore()
        votes = ["alice"]
        store.set("k", votes)
        votes.append("bob")

        read = store.get("k")
        read.append("carol")

        assert store.get("k") == ["alice"]

    def test_rejects_non_json(self):
        with pytest.raises(TypeError):
            MemoryItemStore().set("k", {1, 2})

    def test_delete_missing_is_noop(self):
        store = MemoryItemStore()
        store.delete("k")
        assert store.keys() == []


class TestSqlItemStore:
    """Test the SQLAlchemy store against in-memory SQLite."""

    @pytest.fixture
    def sql_store(self):
        return SqlItemStore("sqlite://")

    def test_set_get(self, sql_store):
        sql_store.set("reviewgate:approvalVotes:1", ["alice"])
        assert sql_store.get("reviewgate:approvalVotes:1") == ["alice"]

    def test_overwrite(self, sql_store):
        sql_store.set("k", {"revealed": False})
        sql_store.set("k", {"revealed": True})
        assert sql_store.get("k") == {"revealed": True}

    def test_delete(self, sql_store):
        sql_store.set("k", ["alice"])
        sql_store.delete("k")
        sql_store.delete("k")
        assert sql_store.get("k") is None

    def test_ping(self, sql_store):
        assert sql_store.ping() is True

    def test_requires_url_or_factory(self):
        with pytest.raises(ValueError):
            SqlItemStore()

    def test_database_error(self):
        session = MagicMock()
        session.__enter__.return_value.get.side_effect = OperationalError("SELECT", {}, Exception("locked"))
        store = SqlItemStore(session_factory=lambda: session)

        with pytest.raises(UpstreamError, match="Store GET failed"):
            store.get("k")


class TestRedisItemStore:
    """Test the Redis store with a mocked client."""

    def test_get_decodes_json(self):
        client = MagicMock()
        client.get.return_value = json.dumps(["alice"])
        assert RedisItemStore(client=client).get("k") == ["alice"]

    def test_get_missing(self):
        client = MagicMock()
        client.get.return_value = None
        assert RedisItemStore(client=client).get("k") is None

    def test_set_encodes_json(self):
        client = MagicMock()
        RedisItemStore(client=client).set("k", {"revealed": True})
        client.set.assert_called_once_with("k", '{"revealed": true}')

    def test_delete(self):
        client = MagicMock()
        RedisItemStore(client=client).delete("k")
        client.delete.assert_called_once_with("k")

    def test_errors_are_upstream(self):
        client = MagicMock()
        client.set.side_effect = redis.ConnectionError("refused")
        with pytest.raises(UpstreamError, match="Store SET failed"):
            RedisItemStore(client=client).set("k", [])

    def test_ping(self):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        assert RedisItemStore(client=client).ping() is False

    def test_requires_url_or_client(self):
        with pytest.raises(ValueError):
            RedisItemStore()


class TestIssuePropertyStore:
    """Test the issue property store."""

    def test_split_key(self):
        assert split_key("reviewgate:approvalVotes:10001") == ("10001", "reviewgate.approvalVotes")

    @pytest.mark.parametrize("key", ["plain", ":10001", "reviewgate:"])
    def test_split_bad_key(self, key):
        with pytest.raises(ValueError):
            split_key(key)

    def test_delegates_to_provider(self):
        provider = MagicMock()
        provider.get_property.return_value = ["alice"]
        store = IssuePropertyStore(provider)

        assert store.get("reviewgate:approvalVotes:10001") == ["alice"]
        store.set("reviewgate:participants:10001", [{"account_id": "bob"}])
        store.delete("reviewgate:estimates:10001")

        provider.get_property.assert_called_once_with("10001", "reviewgate.approvalVotes")
        provider.set_property.assert_called_once_with(
            "10001", "reviewgate.participants", [{"account_id": "bob"}]
        )
        provider.delete_property.assert_called_once_with("10001", "reviewgate.estimates")

    def test_ledger_uses_bare_property(self):
        """Test the vote ledger reads and writes the plain approvalVotes property."""
        provider = MagicMock()
        provider.get_property.return_value = ["alice"]
        store = IssuePropertyStore(provider, bare_kinds=["approvalVotes"])

        assert store.get("reviewgate:approvalVotes:10001") == ["alice"]
        store.set("reviewgate:participants:10001", [])

        provider.get_property.assert_called_once_with("10001", "approvalVotes")
        provider.set_property.assert_called_once_with("10001", "reviewgate.participants", [])

    def test_split_key_bare_kind(self):
        assert split_key("reviewgate:approvalVotes:10001", ["approvalVotes"]) == (
            "10001",
            "approvalVotes",
        )
        assert split_key("reviewgate:estimates:10001", ["approvalVotes"]) == (
            "10001",
            "reviewgate.estimates",
        )
