"""Tests for backend selection."""

from unittest.mock import patch

import pytest

from reviewgate.core.config import Settings
from reviewgate.core.gate_config import GateConfig
from reviewgate.core.models import Actor
from reviewgate.providers.jira import JiraProvider
from reviewgate.providers.memory import InMemoryProvider, InMemoryWorkspace
from reviewgate.providers.registry import (
    build_provider_factory,
    build_store,
    describe_backends,
    memory_actor_from_authorization,
)
from reviewgate.store.issue_property import IssuePropertyStore
from reviewgate.store.memory import MemoryItemStore
from reviewgate.store.sql import SqlItemStore


def make_settings(**overrides):
    values = {"log_to_file": False}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestMemoryActor:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Bearer alice", Actor("alice")),
            ("bearer  bob ", Actor("bob")),
            ("Basic abc", None),
            ("Bearer ", None),
            (None, None),
        ],
    )
    def test_parse(self, header, expected):
        assert memory_actor_from_authorization(header) == expected


class TestProviderFactory:
    """Test provider factory selection."""

    def test_memory_factory_shares_workspace(self):
        workspace = InMemoryWorkspace()
        factory = build_provider_factory(
            make_settings(provider_backend="memory"), GateConfig(), workspace=workspace
        )

        provider = factory("Bearer alice")

        assert isinstance(provider, InMemoryProvider)
        assert provider.workspace is workspace
        assert provider.read_actor() == Actor("alice")

    def test_jira_factory_forwards_authorization(self):
        factory = build_provider_factory(
            make_settings(provider_backend="jira", jira_base_url="https://x.atlassian.net"),
            GateConfig(approver_field="customfield_1"),
        )

        provider = factory("Bearer user-token")
        try:
            assert isinstance(provider, JiraProvider)
            assert provider.approver_field == "customfield_1"
            assert provider._headers["Authorization"] == "Bearer user-token"
        finally:
            provider.close()

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider backend"):
            build_provider_factory(make_settings(provider_backend="gitlab"), GateConfig())


class TestBuildStore:
    """Test store selection."""

    def test_memory(self):
        assert isinstance(build_store(make_settings(store_backend="memory")), MemoryItemStore)

    def test_sql(self):
        store = build_store(make_settings(store_backend="sql", database_url="sqlite://"))
        assert isinstance(store, SqlItemStore)
        assert store.ping()

    def test_redis(self):
        with patch("reviewgate.store.redis_store.redis.from_url") as from_url:
            store = build_store(make_settings(store_backend="redis", redis_url="redis://cache:6379/1"))
        assert store.store_name == "redis"
        assert from_url.call_args[0][0] == "redis://cache:6379/1"

    def test_issue_property_needs_jira(self):
        settings = make_settings(store_backend="issue_property")
        with pytest.raises(ValueError, match="requires the jira provider"):
            build_store(settings)

        provider = JiraProvider("https://x.atlassian.net", approver_field="customfield_1")
        try:
            store = build_store(settings, provider, GateConfig(ledger_key="teamVotes"))
            assert isinstance(store, IssuePropertyStore)
            assert store.bare_kinds == {"teamVotes"}
            assert build_store(settings, provider).bare_kinds == {"approvalVotes"}
        finally:
            provider.close()

    def test_unknown_store(self):
        with pytest.raises(ValueError, match="Unknown store backend"):
            build_store(make_settings(store_backend="etcd"))

    def test_describe(self):
        settings = make_settings(provider_backend="memory", store_backend="sql")
        assert describe_backends(settings) == {"provider": "memory", "store": "sql"}
