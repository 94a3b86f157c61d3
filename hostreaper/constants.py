"""Centralized constants and enums for hostreaper.

All orchestrator and EC2 state names live here so the state machine,
the inventory queries and the cloud adapters agree on spelling.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# Orchestrator Host States
# =============================================================================


class HostState(StrEnum):
    """Orchestrator host lifecycle states, in forward order."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    REMOVED = "removed"
    PURGED = "purged"


class AgentState(StrEnum):
    """Agent states that mark a host as unreachable."""

    RECONNECTING = "reconnecting"
    DISCONNECTED = "disconnected"


class Action(StrEnum):
    """Orchestrator host actions the reaper may invoke."""

    NONE = "none"
    DEACTIVATE = "deactivate"
    REMOVE = "remove"
    PURGE = "purge"


# =============================================================================
# EC2 Instance States
# =============================================================================


class InstanceState(StrEnum):
    """EC2 instance state names."""

    PENDING = "pending"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"


INSTANCE_NOT_FOUND_CODES: Final = frozenset({
    "InvalidInstanceID.NotFound",
    "InvalidInstanceId.NotFound",
})

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_INSTANCE_ID_LABEL: Final = "aws.instance_id"
DEFAULT_AVAILABILITY_ZONE_LABEL: Final = "aws.availability_zone"
DEFAULT_HOSTS_PER_PAGE: Final = 100
DEFAULT_INTERVAL_SECS: Final = 30.0
DEFAULT_HOME_REGION: Final = "us-east-1"
DEFAULT_REQUEST_TIMEOUT: Final = 30
CONFIG_FILE_NAME: Final = "hostreaper.toml"
