from __future__ import annotations

from typing import Protocol

from loguru import logger

from hostreaper.constants import Action
from hostreaper.errors import OrchestratorActionError, OrchestratorError
from hostreaper.types import Host

from .state_machine import expected_state


class ActionPerformer(Protocol):
    async def perform_action(self, host: Host, action: Action | str) -> Host: ...


class ActionExecutor:
    """Applies a single host action through the orchestrator.

    The orchestrator decides whether the transition is accepted. Failures
    are reported, never retried here; the next pass tries again.
    """

    def __init__(self, orchestrator: ActionPerformer) -> None:
        self._orchestrator = orchestrator
        self._log = logger.bind(component="executor")

    async def apply(self, host: Host, action: Action) -> Host:
        if action is Action.NONE:
            return host

        log = self._log.bind(hostname=host.hostname, action=action.value)
        try:
            updated = await self._orchestrator.perform_action(host, action)
        except OrchestratorError as e:
            raise OrchestratorActionError(host.hostname, action.value, str(e)) from e

        expected = expected_state(action)
        if updated.state != expected:
            # transitioning states (e.g. "deactivating") are normal
            log.debug("Host reported {state} after {action}, expected {expected}",
                      state=updated.state, action=action.value, expected=expected)
        log.info("Applied {action}: {old} -> {new}", action=action.value, old=host.state, new=updated.state)
        return updated
