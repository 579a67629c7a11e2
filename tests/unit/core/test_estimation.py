"""Tests for estimation sessions."""

import math

import pytest

from reviewgate.core.approval.estimation import normalize_session, parse_estimate
from reviewgate.core.errors import NotAuthorizedError, NotFoundError, ValidationError

from tests.factories import create_item


class TestParseEstimate:
    """Test estimate validation."""

    @pytest.mark.parametrize("value,expected", [(3, 3), ("5", 5), (2.5, 2.5), ("0", 0), (8.0, 8)])
    def test_valid(self, value, expected):
        assert parse_estimate(value) == expected

    @pytest.mark.parametrize("value", [-1, "abc", None, True, math.inf, math.nan, "", [3]])
    def test_invalid(self, value):
        with pytest.raises(ValidationError):
            parse_estimate(value)


class TestNormalizeSession:
    def test_non_mapping(self):
        assert normalize_session(["x"]) == {"revealed": False, "estimates": {}}

    def test_keeps_estimates(self):
        raw = {"revealed": 1, "estimates": {"alice": {"display_name": "Alice", "estimate": 3}}}
        assert normalize_session(raw) == {
            "revealed": True,
            "estimates": {"alice": {"display_name": "Alice", "estimate": 3}},
        }


class TestEstimationService:
    """Test estimation sessions against the in-memory provider."""

    def test_empty_state(self, workspace, estimation_for, alice):
        item_id = create_item(workspace, approvers=[alice])
        assert estimation_for(alice).get_state(item_id) == {
            "revealed": False,
            "estimates": {},
            "participants": [],
        }

    def test_enter_estimate(self, workspace, estimation_for, alice):
        item_id = create_item(workspace, approvers=[alice])

        state = estimation_for(alice).enter_estimate(item_id, alice, "5")

        assert state["estimates"] == {"alice": {"display_name": "Alice Example", "estimate": 5}}
        assert state["revealed"] is False

    def test_replace_estimate(self, workspace, estimation_for, alice):
        item_id = create_item(workspace)
        service = estimation_for(alice)

        service.enter_estimate(item_id, alice, 3)
        state = service.enter_estimate(item_id, alice, 8)

        assert state["estimates"]["alice"]["estimate"] == 8

    def test_entering_hides_results(self, workspace, estimation_for, alice, bob):
        item_id = create_item(workspace)
        estimation_for(alice).enter_estimate(item_id, alice, 3)
        assert estimation_for(alice).reveal(item_id)["revealed"] is True

        state = estimation_for(bob).enter_estimate(item_id, bob, 5)

        assert state["revealed"] is False
        assert set(state["estimates"]) == {"alice", "bob"}

    def test_invalid_estimate(self, workspace, estimation_for, alice):
        item_id = create_item(workspace)
        with pytest.raises(ValidationError):
            estimation_for(alice).enter_estimate(item_id, alice, -2)

    def test_restriction(self, workspace, estimation_for, alice, bob):
        item_id = create_item(workspace)
        estimation_for(alice).set_participants(item_id, [bob.to_dict()])

        with pytest.raises(NotAuthorizedError):
            estimation_for(alice).enter_estimate(item_id, alice, 3)
        state = estimation_for(bob).enter_estimate(item_id, bob, 3)
        assert list(state["estimates"]) == ["bob"]

    def test_clear(self, workspace, estimation_for, alice):
        item_id = create_item(workspace)
        service = estimation_for(alice)
        service.enter_estimate(item_id, alice, 3)
        service.reveal(item_id)

        state = service.clear(item_id)

        assert state["estimates"] == {}
        assert state["revealed"] is False
        assert service.get_state(item_id)["estimates"] == {}

    def test_keyed_by_canonical_id(self, workspace, store, estimation_for, alice):
        """Test sessions opened by key and by id are the same session."""
        item_id = create_item(workspace, key="GATE-7")
        estimation_for(alice).enter_estimate("GATE-7", alice, 2)

        assert estimation_for(alice).get_state(item_id)["estimates"]["alice"]["estimate"] == 2
        assert store.get(f"reviewgate:estimates:{item_id}") is not None

    def test_set_participants(self, workspace, estimation_for, alice, bob):
        item_id = create_item(workspace)
        service = estimation_for(alice)

        state = service.set_participants(item_id, ["bob", {"accountId": "alice"}, "bob"])

        assert [p["account_id"] for p in state["participants"]] == ["bob", "alice"]
        assert [p["account_id"] for p in service.get_participants(item_id)] == ["bob", "alice"]

        service.set_participants(item_id, [])
        assert service.get_participants(item_id) == []

    def test_unknown_item(self, estimation_for, alice):
        with pytest.raises(NotFoundError):
            estimation_for(alice).get_state("NOPE-1")
