"""Capability gate - role checks and run-state control for mutating operations"""

import logging
from enum import Enum
from typing import Dict, Set

from vault_gateway.domain.exceptions import InvalidRunStateError, UnauthorizedError
from vault_gateway.domain.interfaces import CapabilityStore
from vault_gateway.domain.models import RunState
from vault_gateway.domain.state import VaultState

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    ADMIN = "admin"
    PAUSER = "pauser"
    TREASURER = "treasurer"
    ORACLE_UPDATER = "oracle_updater"


# Operations not listed here need no capability (deposit, withdraw, pay_interest)
OPERATION_CAPABILITIES: Dict[str, Capability] = {
    "suspend": Capability.PAUSER,
    "resume": Capability.PAUSER,
    "emergency_withdraw": Capability.TREASURER,
    "update_credit_score": Capability.ADMIN,
    "configure_feed": Capability.ORACLE_UPDATER,
    "update_cached_price": Capability.ORACLE_UPDATER,
    "invalidate_cached_price": Capability.ORACLE_UPDATER,
}


class InMemoryCapabilityStore:
    """Minimal grant registry used for bootstrap and tests"""

    def __init__(self):
        self._grants: Dict[str, Set[str]] = {}

    def grant(self, identity: str, capability: Capability) -> None:
        self._grants.setdefault(identity, set()).add(Capability(capability).value)

    def revoke(self, identity: str, capability: Capability) -> None:
        self._grants.get(identity, set()).discard(Capability(capability).value)

    def grant_all(self, identity: str) -> None:
        for capability in Capability:
            self.grant(identity, capability)

    def has_capability(self, identity: str, capability: str) -> bool:
        return Capability(capability).value in self._grants.get(identity, set())


class CapabilityGate:
    """Single entry point for capability and run-state checks"""

    def __init__(self, state: VaultState, store: CapabilityStore):
        self.state = state
        self.store = store

    @property
    def run_state(self) -> RunState:
        return self.state.run_state

    def authorize(self, identity: str, capability: Capability) -> bool:
        return self.store.has_capability(identity, Capability(capability).value)

    def require(self, identity: str, capability: Capability) -> None:
        if not self.authorize(identity, capability):
            logger.warning(
                "Capability check failed",
                extra={"identity": identity, "capability": Capability(capability).value},
            )
            raise UnauthorizedError(identity, Capability(capability).value)

    def require_operation(self, identity: str, operation: str) -> None:
        capability = OPERATION_CAPABILITIES.get(operation)
        if capability is not None:
            self.require(identity, capability)

    def require_running(self) -> None:
        if self.state.run_state is not RunState.RUNNING:
            raise InvalidRunStateError(RunState.RUNNING.value, self.state.run_state.value)

    def require_suspended(self) -> None:
        if self.state.run_state is not RunState.SUSPENDED:
            raise InvalidRunStateError(RunState.SUSPENDED.value, self.state.run_state.value)

    def suspend(self, caller: str) -> None:
        self.require_operation(caller, "suspend")
        self.require_running()
        self.state.run_state = RunState.SUSPENDED
        logger.warning("Vault suspended", extra={"identity": caller})

    def resume(self, caller: str) -> None:
        self.require_operation(caller, "resume")
        self.require_suspended()
        self.state.run_state = RunState.RUNNING
        logger.info("Vault resumed", extra={"identity": caller})
