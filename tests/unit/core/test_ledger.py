"""Tests for the vote ledger and participant restriction."""

import pytest

from reviewgate.core.approval.ledger import (
    ParticipantRestriction,
    VoteLedger,
    normalize_ledger,
    restriction_allows,
)
from reviewgate.core.approval.states import Actor
from reviewgate.store.memory import MemoryItemStore


@pytest.fixture
def ledger(store):
    return VoteLedger(store, "reviewgate", "approvalVotes")


@pytest.fixture
def restriction(store):
    return ParticipantRestriction(store, "reviewgate")


class TestNormalizeLedger:
    """Test ledger normalization."""

    def test_deduplicates_in_order(self):
        assert normalize_ledger(["bob", "alice", "bob"]) == ["bob", "alice"]

    @pytest.mark.parametrize("raw", [None, "alice", {"alice": True}, 3])
    def test_non_list_is_empty(self, raw):
        assert normalize_ledger(raw) == []

    def test_drops_non_ids(self):
        assert normalize_ledger(["alice", None, "", {"x": 1}, 7, "7"]) == ["alice", "7"]


class TestVoteLedger:
    """Test vote recording."""

    def test_missing_ledger_is_empty(self, ledger):
        assert ledger.read("10001") == []

    def test_add_records_once(self, ledger):
        """Test duplicate votes do not grow the ledger."""
        assert ledger.add("10001", "alice") is True
        assert ledger.add("10001", "alice") is False
        assert ledger.read("10001") == ["alice"]

    def test_key_namespacing(self, ledger, store):
        ledger.add("10001", "alice")
        assert store.get("reviewgate:approvalVotes:10001") == ["alice"]

    def test_items_are_independent(self, ledger):
        ledger.add("10001", "alice")
        assert ledger.read("10002") == []

    def test_clear(self, ledger, store):
        ledger.add("10001", "alice")
        ledger.add("10001", "bob")
        ledger.clear("10001")
        assert ledger.read("10001") == []
        assert store.keys() == []

    def test_lost_update_between_stale_writers(self):
        """Test two writers holding stale reads can drop each other's vote.

        Accepted trade-off of whole-value rewrites; the next read-modify-write
        by the dropped voter records the vote again.
        """
        store = MemoryItemStore()
        ledger = VoteLedger(store, "reviewgate", "approvalVotes")
        stale = ledger.read("10001")

        ledger.add("10001", "alice")
        store.set(ledger.key("10001"), stale + ["bob"])

        assert ledger.read("10001") == ["bob"]
        assert ledger.add("10001", "alice") is True
        assert ledger.read("10001") == ["bob", "alice"]


class TestParticipantRestriction:
    """Test the participant allow-list."""

    def test_write_and_read(self, restriction):
        actors = restriction.write("10001", [{"accountId": "alice", "displayName": "Alice"}, "bob"])
        assert actors == [Actor("alice"), Actor("bob")]
        assert restriction.read("10001") == [Actor("alice"), Actor("bob")]

    def test_write_deduplicates(self, restriction):
        restriction.write("10001", ["alice", "alice"])
        assert restriction.read("10001") == [Actor("alice")]

    def test_empty_write_removes_restriction(self, restriction, store):
        restriction.write("10001", ["alice"])
        restriction.write("10001", [])
        assert restriction.read("10001") == []
        assert store.get("reviewgate:participants:10001") is None

    def test_allows(self):
        assert restriction_allows([], Actor("alice"))
        assert restriction_allows([Actor("alice")], Actor("alice"))
        assert not restriction_allows([Actor("bob")], Actor("alice"))
