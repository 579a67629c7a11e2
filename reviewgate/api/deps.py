from typing import Generator, Optional

from fastapi import Depends, Header, Request

from reviewgate.core.approval import ApprovalGateEngine, EstimationService
from reviewgate.core.config import Settings
from reviewgate.core.gate_config import GateConfig
from reviewgate.providers.base import SourceOfTruthProvider
from reviewgate.providers.registry import build_store
from reviewgate.store.base import ItemStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gate_config(request: Request) -> GateConfig:
    return request.app.state.gate_config


def get_provider(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Generator:
    """Provider bound to the caller's credentials, closed after the request."""
    provider = request.app.state.provider_factory(authorization)
    try:
        yield provider
    finally:
        provider.close()


def get_store(
    request: Request,
    provider: SourceOfTruthProvider = Depends(get_provider),
) -> ItemStore:
    """Shared item store, or a per-request one when it lives on the provider."""
    store = request.app.state.store
    if store is not None:
        return store
    return build_store(request.app.state.settings, provider, request.app.state.gate_config)


def get_engine(
    provider: SourceOfTruthProvider = Depends(get_provider),
    store: ItemStore = Depends(get_store),
    gate_config: GateConfig = Depends(get_gate_config),
    settings: Settings = Depends(get_app_settings),
) -> ApprovalGateEngine:
    return ApprovalGateEngine(provider, store, gate_config, key_prefix=settings.store_key_prefix)


def get_estimation(
    provider: SourceOfTruthProvider = Depends(get_provider),
    store: ItemStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> EstimationService:
    return EstimationService(provider, store, key_prefix=settings.store_key_prefix)
