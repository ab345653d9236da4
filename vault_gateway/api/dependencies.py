"""Dependency injection for FastAPI endpoints"""

from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Header, Request

from vault_gateway.config import Settings, settings as default_settings
from vault_gateway.domain.access import CapabilityGate, InMemoryCapabilityStore
from vault_gateway.domain.interfaces import CapabilityStore, FeedSource, TransferSink
from vault_gateway.domain.ledger import LedgerEngine
from vault_gateway.domain.models import BankConfig
from vault_gateway.domain.oracle import PriceOracle
from vault_gateway.domain.state import VaultState
from vault_gateway.infrastructure.clients.price_feed import PriceFeedClient
from vault_gateway.infrastructure.clients.transfer import TransferClient


@dataclass
class Vault:
    """Process-wide bundle of the vault's state and the components sharing it"""

    state: VaultState
    gate: CapabilityGate
    ledger: LedgerEngine
    oracle: PriceOracle


def build_vault(
    app_settings: Optional[Settings] = None,
    feed_source: Optional[FeedSource] = None,
    transfer_sink: Optional[TransferSink] = None,
    capability_store: Optional[CapabilityStore] = None,
    clock: Optional[Callable[[], int]] = None,
) -> Vault:
    """Construct the state aggregate once and wire every component to it"""
    app_settings = app_settings or default_settings

    if capability_store is None:
        capability_store = InMemoryCapabilityStore()
        capability_store.grant_all(app_settings.bootstrap_admin)

    state = VaultState(config=BankConfig.from_settings(app_settings))
    gate = CapabilityGate(state, capability_store)
    clock_kwargs = {"clock": clock} if clock is not None else {}

    ledger = LedgerEngine(state, gate, transfer_sink or TransferClient(), **clock_kwargs)
    oracle = PriceOracle(
        state,
        gate,
        feed_source or PriceFeedClient(),
        stale_threshold=app_settings.oracle_stale_threshold_seconds,
        default_min_price=app_settings.default_min_price,
        default_max_price=app_settings.default_max_price,
        **clock_kwargs,
    )
    return Vault(state=state, gate=gate, ledger=ledger, oracle=oracle)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_vault(request: Request) -> Vault:
    """Provide the application's vault instance"""
    return request.app.state.vault


def get_caller_id(x_caller_id: str = Header(..., min_length=1)) -> str:
    """Identity of the caller, asserted by the upstream authentication layer"""
    return x_caller_id
