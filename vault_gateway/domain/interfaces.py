"""Protocols for the external collaborators the vault depends on.

Infrastructure provides the real implementations (HTTP clients); unit tests
inject in-memory fakes that conform to these protocols.
"""

from typing import Protocol

from vault_gateway.domain.models import RoundData


class FeedSource(Protocol):
    """Third-party price feed. Every value it returns is untrusted."""

    async def latest_round_data(self, source_ref: str) -> RoundData: ...

    async def get_round_data(self, source_ref: str, round_id: int) -> RoundData: ...

    async def description(self, source_ref: str) -> str: ...

    async def decimals(self, source_ref: str) -> int: ...


class TransferSink(Protocol):
    """Moves native asset out of custody.

    Must raise TransferFailedError when the movement is not acknowledged.
    """

    async def transfer(self, to: str, amount: int, reference: str) -> None: ...


class CapabilityStore(Protocol):
    def has_capability(self, identity: str, capability: str) -> bool: ...
