"""TypedDicts for the orchestrator's host API responses."""

from __future__ import annotations

from typing import NotRequired, TypedDict


class PaginationResponse(TypedDict, total=False):
    first: str | None
    previous: str | None
    next: str | None
    limit: int
    partial: bool


class HostResponse(TypedDict):
    id: str
    hostname: NotRequired[str]
    name: NotRequired[str | None]
    state: str
    agentState: NotRequired[str | None]
    labels: NotRequired[dict[str, str] | None]
    actions: NotRequired[dict[str, str]]
    links: NotRequired[dict[str, str]]


class HostCollectionResponse(TypedDict):
    type: NotRequired[str]
    data: list[HostResponse]
    pagination: NotRequired[PaginationResponse | None]
