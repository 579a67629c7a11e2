"""Provider and store selection.

Maps the backend names in ``Settings`` to factories. Providers are built per
request because they are bound to the acting user's credentials; stores are
built once and shared.
"""

from typing import Callable, Dict, Optional

from reviewgate.core.config import Settings
from reviewgate.core.gate_config import GateConfig
from reviewgate.core.logger import get_logger
from reviewgate.core.models import Actor
from reviewgate.store.base import ItemStore
from reviewgate.store.memory import MemoryItemStore
from .base import SourceOfTruthProvider
from .jira import JiraProvider
from .memory import InMemoryWorkspace, InMemoryProvider

logger = get_logger("registry")

# Called with the caller's Authorization header (or None)
ProviderFactory = Callable[[Optional[str]], SourceOfTruthProvider]

PROVIDER_BACKENDS = ("jira", "memory")
STORE_BACKENDS = ("memory", "redis", "sql", "issue_property")


def memory_actor_from_authorization(authorization: Optional[str]) -> Optional[Actor]:
    """Resolve ``Bearer <account_id>`` to an actor for the in-memory provider."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return Actor(token.strip(), token.strip())


def build_provider_factory(
    settings: Settings,
    gate_config: GateConfig,
    *,
    workspace: Optional[InMemoryWorkspace] = None,
) -> ProviderFactory:
    """Return a factory that builds a provider for one request.

    Raises:
        ValueError: If the provider backend is unknown
    """
    backend = settings.provider_backend.lower()
    logger.info(f"Using {backend} provider backend")

    if backend == "jira":
        def jira_factory(authorization: Optional[str]) -> SourceOfTruthProvider:
            return JiraProvider(
                settings.jira_base_url,
                approver_field=gate_config.approver_field,
                email=settings.jira_email,
                api_token=settings.jira_api_token,
                authorization=authorization,
                timeout=settings.http_timeout,
            )
        return jira_factory

    if backend == "memory":
        shared = workspace or InMemoryWorkspace()

        def memory_factory(authorization: Optional[str]) -> SourceOfTruthProvider:
            return InMemoryProvider(
                shared,
                memory_actor_from_authorization(authorization),
                approver_field=gate_config.approver_field,
            )
        return memory_factory

    raise ValueError(
        f"Unknown provider backend: {settings.provider_backend}. "
        f"Must be one of: {', '.join(PROVIDER_BACKENDS)}"
    )


def build_store(
    settings: Settings,
    provider: Optional[SourceOfTruthProvider] = None,
    gate_config: Optional[GateConfig] = None,
) -> ItemStore:
    """Build the item store named by the settings.

    The issue-property store lives on the issue itself and therefore needs
    the request's Jira provider. The vote ledger keeps the bare property
    name given by the gate configuration.

    Raises:
        ValueError: If the store backend is unknown or cannot be built
    """
    backend = settings.store_backend.lower()
    logger.debug(f"Building {backend} item store")

    if backend == "memory":
        return MemoryItemStore()
    if backend == "redis":
        from reviewgate.store.redis_store import RedisItemStore

        return RedisItemStore(settings.redis_url)
    if backend == "sql":
        from reviewgate.store.sql import SqlItemStore

        return SqlItemStore(settings.database_url)
    if backend == "issue_property":
        from reviewgate.store.issue_property import IssuePropertyStore

        if not isinstance(provider, JiraProvider):
            raise ValueError("issue_property store requires the jira provider")
        ledger_key = (gate_config or GateConfig()).ledger_key
        return IssuePropertyStore(provider, bare_kinds=[ledger_key])

    raise ValueError(
        f"Unknown store backend: {settings.store_backend}. "
        f"Must be one of: {', '.join(STORE_BACKENDS)}"
    )


def describe_backends(settings: Settings) -> Dict[str, str]:
    return {"provider": settings.provider_backend, "store": settings.store_backend}
