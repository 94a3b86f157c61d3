"""hostreaper - retire orchestrator hosts whose cloud instances are gone.

Example:

    import asyncio

    from injector import Injector
    from hostreaper import Reaper, ReaperModule, load_config

    config = load_config()
    reaper = Injector([ReaperModule(config)]).get(Reaper)
    asyncio.run(reaper.run())
"""

from hostreaper.cloud import InstanceStatusResolver, RegionResolver, region_from_zone
from hostreaper.config import ReaperConfig, load_config
from hostreaper.constants import Action, AgentState, HostState, InstanceState
from hostreaper.errors import (
    ConfigurationError,
    InstanceLookupAmbiguous,
    InventoryFetchError,
    OrchestratorActionError,
    OrchestratorError,
    ReaperError,
    RegionUnavailable,
)
from hostreaper.module import ReaperModule
from hostreaper.orchestrator import OrchestratorClient
from hostreaper.reaper import ActionExecutor, HostInventory, Reaper, next_action
from hostreaper.types import (
    Host,
    InstanceStatus,
    Live,
    NotFound,
    PassReport,
    Purged,
    RegionClient,
    Terminated,
    is_gone,
)

__all__ = [
    "Action",
    "ActionExecutor",
    "AgentState",
    "ConfigurationError",
    "Host",
    "HostInventory",
    "HostState",
    "InstanceLookupAmbiguous",
    "InstanceState",
    "InstanceStatus",
    "InstanceStatusResolver",
    "InventoryFetchError",
    "Live",
    "NotFound",
    "OrchestratorActionError",
    "OrchestratorClient",
    "OrchestratorError",
    "PassReport",
    "Purged",
    "Reaper",
    "ReaperConfig",
    "ReaperError",
    "ReaperModule",
    "RegionClient",
    "RegionResolver",
    "RegionUnavailable",
    "Terminated",
    "is_gone",
    "load_config",
    "next_action",
    "region_from_zone",
]
