"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from reviewgate.api.main import create_app
from reviewgate.core.approval import ApprovalGateEngine, EstimationService
from reviewgate.core.config import Settings
from reviewgate.core.gate_config import GateConfig
from reviewgate.core.models import Actor
from reviewgate.providers.memory import InMemoryProvider, InMemoryWorkspace
from reviewgate.store.memory import MemoryItemStore

from tests.factories import APPROVED_AT


@pytest.fixture
def alice():
    return Actor("alice", "Alice Example")


@pytest.fixture
def bob():
    return Actor("bob", "Bob Example")


@pytest.fixture
def carol():
    return Actor("carol", "Carol Example")


@pytest.fixture
def gate_config():
    """Default gate: Ready for Review -> Approved with both annotation fields."""
    return GateConfig()


@pytest.fixture
def workspace():
    return InMemoryWorkspace()


@pytest.fixture
def store():
    return MemoryItemStore()


@pytest.fixture
def provider_for(workspace, gate_config):
    """Build an in-memory provider view acting as the given actor."""
    def _provider_for(actor):
        return InMemoryProvider(workspace, actor, approver_field=gate_config.approver_field)
    return _provider_for


@pytest.fixture
def engine_for(provider_for, store, gate_config):
    """Build an engine acting as the given actor, with a fixed clock."""
    def _engine_for(actor):
        return ApprovalGateEngine(
            provider_for(actor), store, gate_config, clock=lambda: APPROVED_AT
        )
    return _engine_for


@pytest.fixture
def estimation_for(provider_for, store):
    def _estimation_for(actor):
        return EstimationService(provider_for(actor), store)
    return _estimation_for


@pytest.fixture
def settings():
    """Settings for an app backed by the in-memory provider and store."""
    return Settings(
        provider_backend="memory",
        store_backend="memory",
        log_to_file=False,
        debug=True,
    )


@pytest.fixture
def app(settings, workspace, store):
    return create_app(settings, workspace=workspace, store=store)


@pytest.fixture
def client(app):
    """Test client for the gate service."""
    with TestClient(app) as test_client:
        yield test_client
