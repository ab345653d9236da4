"""Pytest fixtures for testing"""

import pytest
from dataclasses import replace
from typing import Callable, Dict, Generator, List, Optional, Tuple
from fastapi.testclient import TestClient
from vault_gateway.api.dependencies import Vault
from vault_gateway.api.main import create_app
from vault_gateway.domain.access import Capability, CapabilityGate, InMemoryCapabilityStore
from vault_gateway.domain.exceptions import FeedUnavailableError, TransferFailedError
from vault_gateway.domain.ledger import LedgerEngine
from vault_gateway.domain.models import BankConfig, RoundData
from vault_gateway.domain.oracle import PriceOracle
from vault_gateway.domain.state import VaultState

ETH = 10**18
START = 1_700_006_400  # 2023-11-15 00:00:00 UTC, start of a day bucket
ETH_USD_PRICE = 2_000 * 10**8


class FakeClock:
    """Controllable unix-seconds clock"""

    def __init__(self, now: int = START):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class FakeFeedSource:
    """In-memory feed source; readings are whatever the test sets"""

    def __init__(self, decimals: int = 8, description: str = "ETH / USD"):
        self.decimals_value = decimals
        self.description_value = description
        self.latest: Dict[str, RoundData] = {}
        self.rounds: Dict[Tuple[str, int], RoundData] = {}
        self.unavailable = False

    def set_latest(self, source_ref: str, data: RoundData) -> None:
        self.latest[source_ref] = data
        self.rounds[(source_ref, data.round_id)] = data

    async def latest_round_data(self, source_ref: str) -> RoundData:
        if self.unavailable or source_ref not in self.latest:
            raise FeedUnavailableError(f"feed {source_ref} unreachable")
        return self.latest[source_ref]

    async def get_round_data(self, source_ref: str, round_id: int) -> RoundData:
        if self.unavailable or (source_ref, round_id) not in self.rounds:
            raise FeedUnavailableError(f"round {round_id} unavailable")
        return self.rounds[(source_ref, round_id)]

    async def description(self, source_ref: str) -> str:
        return self.description_value

    async def decimals(self, source_ref: str) -> int:
        return self.decimals_value


class FakeTransferSink:
    """Records transfers; recipients in `rejecting` make the transfer fail"""

    def __init__(self):
        self.transfers: List[Tuple[str, int, str]] = []
        self.attempted_references: List[str] = []
        self.rejecting: set = set()
        self.on_transfer: Optional[Callable[[str, int], None]] = None

    async def transfer(self, to: str, amount: int, reference: str) -> None:
        self.attempted_references.append(reference)
        if self.on_transfer is not None:
            self.on_transfer(to, amount)
        if to in self.rejecting:
            raise TransferFailedError(f"{to} rejected transfer")
        self.transfers.append((to, amount, reference))


def make_config(**overrides) -> BankConfig:
    config = BankConfig(
        capacity_cap=1_000 * ETH,
        per_withdrawal_cap=10 * ETH,
        min_deposit=ETH // 1000,
        daily_withdrawal_cap=50 * ETH,
        interest_rate_bps=500,
        min_credit_score=300,
        max_credit_score=850,
        default_credit_score=500,
    )
    return replace(config, **overrides)


def make_round(
    answer: int = ETH_USD_PRICE,
    updated_at: int = START,
    round_id: int = 100,
    answered_in_round: Optional[int] = None,
) -> RoundData:
    return RoundData(
        round_id=round_id,
        answer=answer,
        started_at=updated_at,
        updated_at=updated_at,
        answered_in_round=round_id if answered_in_round is None else answered_in_round,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def capability_store() -> InMemoryCapabilityStore:
    store = InMemoryCapabilityStore()
    store.grant_all("admin")
    store.grant("pauser", Capability.PAUSER)
    store.grant("treasurer", Capability.TREASURER)
    store.grant("updater", Capability.ORACLE_UPDATER)
    return store


@pytest.fixture
def state() -> VaultState:
    return VaultState(config=make_config())


@pytest.fixture
def gate(state: VaultState, capability_store: InMemoryCapabilityStore) -> CapabilityGate:
    return CapabilityGate(state, capability_store)


@pytest.fixture
def transfer_sink() -> FakeTransferSink:
    return FakeTransferSink()


@pytest.fixture
def ledger(state: VaultState, gate: CapabilityGate, transfer_sink: FakeTransferSink, clock: FakeClock) -> LedgerEngine:
    return LedgerEngine(state, gate, transfer_sink, clock=clock)


@pytest.fixture
def ledger_factory(capability_store, transfer_sink, clock) -> Callable[..., LedgerEngine]:
    """Build a ledger over a fresh state with config overrides"""

    def factory(**overrides) -> LedgerEngine:
        state = VaultState(config=make_config(**overrides))
        return LedgerEngine(state, CapabilityGate(state, capability_store), transfer_sink, clock=clock)

    return factory


@pytest.fixture
def feed_source() -> FakeFeedSource:
    source = FakeFeedSource()
    source.set_latest("eth-usd", make_round())
    return source


@pytest.fixture
def oracle(state: VaultState, gate: CapabilityGate, feed_source: FakeFeedSource, clock: FakeClock) -> PriceOracle:
    oracle = PriceOracle(state, gate, feed_source, clock=clock)
    oracle.configure_feed("updater", "ETH/USD", "eth-usd", "ETH / USD")
    return oracle


@pytest.fixture
def vault(state, gate, ledger, oracle) -> Vault:
    return Vault(state=state, gate=gate, ledger=ledger, oracle=oracle)


@pytest.fixture
def client(vault: Vault) -> Generator[TestClient, None, None]:
    """Create FastAPI test client over the test vault"""
    app = create_app(vault)
    with TestClient(app) as test_client:
        yield test_client
