"""Candidate host inventory: every host whose agent is unreachable."""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from hostreaper.constants import DEFAULT_HOSTS_PER_PAGE, AgentState, HostState
from hostreaper.errors import InventoryFetchError, OrchestratorError
from hostreaper.types import Host


class HostLister(Protocol):
    async def list_hosts(self, agent_state: AgentState | str, limit: int = ...) -> list[Host]: ...


class HostInventory:
    """Union of the ``reconnecting`` and ``disconnected`` host queries.

    Hosts are deduplicated by hostname (first occurrence wins) and purged
    hosts are dropped, so the loop only sees hosts it may still act on.
    """

    def __init__(
        self,
        orchestrator: HostLister,
        page_size: int = DEFAULT_HOSTS_PER_PAGE,
        agent_states: tuple[AgentState, ...] = (AgentState.RECONNECTING, AgentState.DISCONNECTED),
    ) -> None:
        self._orchestrator = orchestrator
        self._page_size = page_size
        self._agent_states = agent_states
        self._log = logger.bind(component="inventory")

    async def fetch(self) -> list[Host]:
        seen: dict[str, Host] = {}
        for agent_state in self._agent_states:
            try:
                hosts = await self._orchestrator.list_hosts(agent_state, limit=self._page_size)
            except OrchestratorError as e:
                raise InventoryFetchError(
                    f"Listing hosts with agentState={agent_state} failed: {e}"
                ) from e
            except Exception as e:
                self._log.exception("Unexpected error listing hosts with agentState={state}", state=agent_state)
                raise InventoryFetchError(
                    f"Listing hosts with agentState={agent_state} failed: {type(e).__name__}: {e}"
                ) from e
            for host in hosts:
                seen.setdefault(host.hostname, host)

        candidates = [h for h in seen.values() if h.state != HostState.PURGED]
        self._log.debug(
            "Inventory: {n} candidates ({purged} purged skipped)",
            n=len(candidates), purged=len(seen) - len(candidates),
        )
        return candidates
