"""Reconciliation loop.

A pass fetches the inventory once, then for each host resolves the region
client, classifies the backing instance, picks the next action and applies
it. Per-host failures are logged and recorded in the pass report; they never
stop the other hosts or later passes. Only an inventory failure aborts a
pass, and the loop still sleeps and tries again.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from loguru import logger

from hostreaper.cloud.instances import InstanceStatusResolver
from hostreaper.cloud.regions import region_from_zone
from hostreaper.config import ReaperConfig
from hostreaper.constants import Action
from hostreaper.errors import InventoryFetchError, RegionUnavailable, ReaperError
from hostreaper.types import Host, PassReport, RegionClient

from .executor import ActionExecutor
from .inventory import HostInventory
from .state_machine import next_action

log = logger.bind(component="reaper")


class RegionLookup(Protocol):
    async def resolve(self, region: str | None) -> RegionClient: ...


class Reaper:
    """Drives agent-unreachable hosts toward ``purged`` one step per pass."""

    def __init__(
        self,
        config: ReaperConfig,
        inventory: HostInventory,
        regions: RegionLookup,
        classifier: InstanceStatusResolver,
        executor: ActionExecutor,
    ) -> None:
        self._config = config
        self._inventory = inventory
        self._regions = regions
        self._classifier = classifier
        self._executor = executor

    async def reconcile_host(self, host: Host) -> Action:
        """Reconcile one host and return the action applied (``NONE`` if idle)."""
        instance_id = host.label(self._config.instance_id_label)
        region = region_from_zone(host.label(self._config.availability_zone_label))

        client = await self._regions.resolve(region)
        status = await self._classifier.classify(instance_id, client)
        action = next_action(host.state, status)

        hlog = log.bind(hostname=host.hostname, instance_id=instance_id, region=region)
        if action is Action.NONE:
            hlog.debug("No action: state={state} status={status}", state=host.state, status=status)
            return action

        hlog.info(
            "Instance gone ({kind}); {action} host in state {state}",
            kind=type(status).__name__, action=action.value, state=host.state,
        )
        await self._executor.apply(host, action)
        return action

    async def run_pass(self) -> PassReport:
        try:
            hosts = await self._inventory.fetch()
        except InventoryFetchError as e:
            log.error("Pass aborted, inventory unavailable: {err}", err=e)
            return PassReport(inventory_error=str(e))

        applied: dict[str, Action] = {}
        skipped: dict[str, str] = {}
        failed: dict[str, str] = {}
        semaphore = asyncio.Semaphore(self._config.concurrency)

        async def process(host: Host) -> None:
            hlog = log.bind(hostname=host.hostname)
            async with semaphore:
                try:
                    action = await self.reconcile_host(host)
                except RegionUnavailable as e:
                    hlog.warning("Skipping host: {err}", err=e)
                    skipped[host.hostname] = str(e)
                except ReaperError as e:
                    hlog.error("Host reconciliation failed: {err}", err=e)
                    failed[host.hostname] = str(e)
                except Exception as e:
                    hlog.exception("Unexpected error reconciling host: {err}", err=e)
                    failed[host.hostname] = f"{type(e).__name__}: {e}"
                else:
                    if action is not Action.NONE:
                        applied[host.hostname] = action

        await asyncio.gather(*(process(h) for h in hosts))

        log.info(
            "Pass complete: {n} hosts, {a} actions, {s} skipped, {f} failed",
            n=len(hosts), a=len(applied), s=len(skipped), f=len(failed),
        )
        return PassReport(hosts=len(hosts), applied=applied, skipped=skipped, failed=failed)

    async def run(self, max_passes: int | None = None) -> None:
        """Run passes until cancelled.

        A non-positive interval runs exactly one pass and returns.
        """
        interval = self._config.interval_secs
        passes = 0
        while True:
            await self.run_pass()
            passes += 1
            if interval <= 0 or (max_passes is not None and passes >= max_passes):
                return
            log.debug("Sleeping {s}s until next pass", s=interval)
            await asyncio.sleep(interval)
