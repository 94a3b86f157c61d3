"""Exception hierarchy for hostreaper.

Per-host errors (region, cloud lookup, action) are contained to the host
that raised them. Only ``InventoryFetchError`` aborts a whole pass, and only
``ConfigurationError`` is fatal to the process.
"""

from __future__ import annotations


class ReaperError(Exception):
    """Base class for every error raised by hostreaper."""


class ConfigurationError(ReaperError):
    """Configuration is unusable, or no region client can ever be built."""


class RegionUnavailable(ReaperError):
    """The region is unknown or could not be validated at bootstrap."""

    def __init__(self, region: str | None, reason: str = "not a valid region") -> None:
        super().__init__(f"Region {region!r} unavailable: {reason}")
        self.region = region
        self.reason = reason


class InstanceNotFoundError(ReaperError):
    """The cloud API has no record of the instance identifier."""

    def __init__(self, instance_id: str) -> None:
        super().__init__(f"Instance {instance_id} not found")
        self.instance_id = instance_id


class InstanceStateUnavailable(ReaperError):
    """The instance lifecycle state could not be read."""

    def __init__(self, instance_id: str, reason: str = "no state returned") -> None:
        super().__init__(f"State of instance {instance_id} unavailable: {reason}")
        self.instance_id = instance_id


class InstanceLookupAmbiguous(ReaperError):
    """Existence and state queries disagree (the purge race).

    Never raised out of the status resolver: the race is classified as
    ``Purged``. Kept so callers can name the condition.
    """


class OrchestratorError(ReaperError):
    """Transport or API error talking to the orchestrator."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Orchestrator API error {status}: {body}")
        self.status = status
        self.body = body


class OrchestratorActionError(ReaperError):
    """The orchestrator rejected or failed to apply a host action."""

    def __init__(self, hostname: str, action: str, reason: str) -> None:
        super().__init__(f"Action {action!r} on host {hostname!r} failed: {reason}")
        self.hostname = hostname
        self.action = action
        self.reason = reason


class InventoryFetchError(ReaperError):
    """Listing candidate hosts failed; the current pass is aborted."""
