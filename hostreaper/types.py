"""Core types: orchestrator hosts, instance status classification, pass reports."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Protocol, TypeAlias, runtime_checkable

from hostreaper.constants import Action

# =============================================================================
# Host
# =============================================================================


def _frozen(mapping: Mapping[str, Any] | None) -> Mapping[str, str]:
    if not isinstance(mapping, Mapping) or not mapping:
        return MappingProxyType({})
    return MappingProxyType({str(k): str(v) for k, v in mapping.items() if v is not None})


@dataclass(frozen=True, slots=True)
class Host:
    """Orchestrator host record.

    Owned by the orchestrator. The reaper reads ``state`` and ``labels``
    and only changes ``state`` by invoking one of ``actions``.
    """

    id: str
    hostname: str
    state: str
    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    actions: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> Host:
        """Build a host from the orchestrator's JSON representation."""
        return cls(
            id=str(data.get("id", "")),
            hostname=str(data.get("hostname") or data.get("name") or data.get("id", "")),
            state=str(data.get("state", "")),
            labels=_frozen(data.get("labels")),
            actions=_frozen(data.get("actions")),
        )

    def label(self, name: str) -> str | None:
        value = self.labels.get(name)
        return value or None


# =============================================================================
# Instance Status Classification
# =============================================================================


@dataclass(frozen=True, slots=True)
class NotFound:
    """The cloud API has no record of the instance (or the host names none)."""

    instance_id: str | None


@dataclass(frozen=True, slots=True)
class Purged:
    """Instance reported non-existent while its state read errors (purge race)."""

    instance_id: str
    reason: str = ""


@dataclass(frozen=True, slots=True)
class Terminated:
    """Instance exists in the terminal ``terminated`` state."""

    instance_id: str


@dataclass(frozen=True, slots=True)
class Live:
    """Instance exists in any non-terminal state."""

    instance_id: str
    state: str


InstanceStatus: TypeAlias = NotFound | Purged | Terminated | Live


def is_gone(status: InstanceStatus) -> bool:
    """Whether the backing instance should be treated as gone."""
    match status:
        case NotFound() | Purged() | Terminated():
            return True
        case Live():
            return False


# =============================================================================
# Cloud Region Client
# =============================================================================


@runtime_checkable
class RegionClient(Protocol):
    """Per-region view of the compute API used for classification."""

    @property
    def region(self) -> str: ...

    async def instance_exists(self, instance_id: str) -> bool: ...

    async def instance_lifecycle_state(self, instance_id: str) -> str: ...


# =============================================================================
# Pass Report
# =============================================================================


@dataclass(frozen=True, slots=True)
class PassReport:
    """Outcome of one reconciliation pass."""

    hosts: int = 0
    applied: Mapping[str, Action] = field(default_factory=dict)
    skipped: Mapping[str, str] = field(default_factory=dict)
    failed: Mapping[str, str] = field(default_factory=dict)
    inventory_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.inventory_error is None and not self.failed
