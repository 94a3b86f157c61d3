"""Async HTTP client for the orchestrator's host API (Rancher v1 style)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from hostreaper.constants import Action, AgentState
from hostreaper.errors import OrchestratorError
from hostreaper.infra.http import HttpClient, HttpError
from hostreaper.types import Host

from .types import HostCollectionResponse, HostResponse

_RETRYABLE_STATUS = frozenset({0, 429, 502, 503, 504})


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and exc.status in _RETRYABLE_STATUS


def _collection(page: Any) -> HostCollectionResponse:
    """Check the shape of a host collection page before trusting it."""
    if page is None:
        return {"data": []}
    if not isinstance(page, Mapping):
        raise OrchestratorError(0, f"malformed host collection: {page!r:.200}")
    data = page.get("data", [])
    if not isinstance(data, list) or not all(isinstance(item, Mapping) for item in data):
        raise OrchestratorError(0, f"malformed host collection data: {data!r:.200}")
    pagination = page.get("pagination") or {}
    if not isinstance(pagination, Mapping) or not isinstance(pagination.get("next") or "", str):
        raise OrchestratorError(0, f"malformed pagination: {pagination!r:.200}")
    return {"data": data, "pagination": pagination}


class OrchestratorClient:
    """Async client for listing hosts and invoking host actions.

    Example:
        async with OrchestratorClient(HttpClient(url, BasicAuth(key, secret))) as api:
            hosts = await api.list_hosts(AgentState.DISCONNECTED)
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http
        self._log = logger.bind(component="orchestrator")

    async def __aenter__(self) -> OrchestratorClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=5),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async def _get_page(self, path: str, params: dict[str, Any] | None) -> HostCollectionResponse:
        return await self._http.request("GET", path, params=params)

    # =========================================================================
    # Hosts
    # =========================================================================

    async def list_hosts(self, agent_state: AgentState | str, limit: int = 100) -> list[Host]:
        """List hosts in the given agent state, following pagination to the end."""
        hosts: list[Host] = []
        path: str | None = "/hosts"
        params: dict[str, Any] | None = {"limit": limit, "agentState": str(agent_state)}
        visited: set[str] = set()

        while path:
            if path in visited:
                raise OrchestratorError(0, f"pagination loop at {path}")
            visited.add(path)
            try:
                page = _collection(await self._get_page(path, params))
            except HttpError as e:
                raise OrchestratorError(e.status, e.body) from e
            hosts.extend(Host.from_api(item) for item in page["data"])
            path = (page.get("pagination") or {}).get("next")
            # next links already carry the query string
            params = None

        self._log.debug(
            "Listed {n} hosts with agentState={state} ({pages} pages)",
            n=len(hosts), state=agent_state, pages=len(visited),
        )
        return hosts

    async def perform_action(self, host: Host, action: Action | str) -> Host:
        """Invoke a host action and return the updated host record."""
        name = str(action)
        path = host.actions.get(name) or f"/hosts/{host.id}?action={name}"
        self._log.debug("POST action {action} on {hostname}", action=name, hostname=host.hostname)
        try:
            result: HostResponse | None = await self._http.request("POST", path, json={})
        except HttpError as e:
            raise OrchestratorError(e.status, e.body) from e
        if not isinstance(result, Mapping) or not result:
            raise OrchestratorError(0, f"malformed response for action {name}: {result!r:.200}")
        return Host.from_api(result)
