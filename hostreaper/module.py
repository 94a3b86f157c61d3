"""DI module wiring hostreaper's components from a ``ReaperConfig``.

Usage:
    injector = Injector([ReaperModule(config)])
    reaper = injector.get(Reaper)
"""

from __future__ import annotations

import aioboto3
from injector import Binder, Module, provider, singleton

from .cloud import InstanceStatusResolver, RegionResolver
from .config import ReaperConfig
from .errors import ConfigurationError
from .infra.http import BasicAuth, HttpClient
from .orchestrator import OrchestratorClient
from .reaper import ActionExecutor, HostInventory, Reaper


class ReaperModule(Module):
    """Provides singleton clients and core components for one reaper."""

    def __init__(self, config: ReaperConfig) -> None:
        self._config = config

    def configure(self, binder: Binder) -> None:
        binder.bind(ReaperConfig, to=self._config)

    @singleton
    @provider
    def provide_session(self) -> aioboto3.Session:
        return aioboto3.Session()

    @singleton
    @provider
    def provide_http(self, config: ReaperConfig) -> HttpClient:
        auth = None
        if config.access_key or config.secret_key:
            if not (config.access_key and config.secret_key):
                raise ConfigurationError("Both access key and secret key are required")
            auth = BasicAuth(config.access_key, config.secret_key)
        return HttpClient(config.url, auth, timeout=config.request_timeout)

    @singleton
    @provider
    def provide_orchestrator(self, http: HttpClient) -> OrchestratorClient:
        return OrchestratorClient(http)

    @singleton
    @provider
    def provide_regions(self, session: aioboto3.Session, config: ReaperConfig) -> RegionResolver:
        return RegionResolver(session, home_region=config.home_region)

    @singleton
    @provider
    def provide_classifier(self, config: ReaperConfig) -> InstanceStatusResolver:
        return InstanceStatusResolver(strict_purge_race=config.strict_purge_race)

    @singleton
    @provider
    def provide_inventory(self, orchestrator: OrchestratorClient, config: ReaperConfig) -> HostInventory:
        return HostInventory(orchestrator, page_size=config.hosts_per_page)

    @singleton
    @provider
    def provide_executor(self, orchestrator: OrchestratorClient) -> ActionExecutor:
        return ActionExecutor(orchestrator)

    @singleton
    @provider
    def provide_reaper(
        self,
        config: ReaperConfig,
        inventory: HostInventory,
        regions: RegionResolver,
        classifier: InstanceStatusResolver,
        executor: ActionExecutor,
    ) -> Reaper:
        return Reaper(config, inventory, regions, classifier, executor)


__all__ = ["ReaperModule"]
