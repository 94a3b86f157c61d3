"""Per-region EC2 clients.

The set of valid regions is fetched once, at startup, with a single
``describe_regions`` call through the home region. After that, lookups
never touch the network to decide validity: valid regions get one cached
client each, built on first use; anything else fails fast with
``RegionUnavailable``.
"""

from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING, Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from hostreaper.constants import INSTANCE_NOT_FOUND_CODES
from hostreaper.errors import (
    ConfigurationError,
    InstanceNotFoundError,
    InstanceStateUnavailable,
    RegionUnavailable,
)

if TYPE_CHECKING:
    from types_aiobotocore_ec2 import EC2Client


def region_from_zone(zone: str | None) -> str | None:
    """Map an availability zone to its region (``us-west-1a`` -> ``us-west-1``)."""
    if not zone:
        return None
    zone = zone.strip()
    if zone and zone[-1].isalpha():
        return zone[:-1] or None
    return zone or None


def _error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


# =============================================================================
# EC2 Region Client
# =============================================================================


class EC2RegionClient:
    """``RegionClient`` backed by an aioboto3 EC2 client."""

    def __init__(self, region: str, ec2: EC2Client | Any) -> None:
        self._region = region
        self._ec2 = ec2

    @property
    def region(self) -> str:
        return self._region

    async def _describe(self, instance_id: str) -> dict[str, Any] | None:
        try:
            response = await self._ec2.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if _error_code(e) in INSTANCE_NOT_FOUND_CODES:
                raise InstanceNotFoundError(instance_id) from e
            raise
        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                if instance.get("InstanceId", instance_id) == instance_id:
                    return instance
        return None

    async def instance_exists(self, instance_id: str) -> bool:
        return await self._describe(instance_id) is not None

    async def instance_lifecycle_state(self, instance_id: str) -> str:
        instance = await self._describe(instance_id)
        if instance is None:
            raise InstanceStateUnavailable(instance_id, "no instance record")
        state = (instance.get("State") or {}).get("Name")
        if not state:
            raise InstanceStateUnavailable(instance_id)
        return state


# =============================================================================
# Region Resolver
# =============================================================================


class RegionResolver:
    """Resolves region names to cached ``EC2RegionClient`` instances.

    Example:
        >>> resolver = RegionResolver(aioboto3.Session(), home_region="us-east-1")
        >>> await resolver.bootstrap()
        >>> client = await resolver.resolve("us-west-2")
    """

    def __init__(self, session: aioboto3.Session, home_region: str) -> None:
        self._session = session
        self._home_region = home_region
        self._valid: frozenset[str] | None = None
        self._ec2: dict[str, Any] = {}
        self._clients: dict[str, EC2RegionClient] = {}
        self._unavailable: dict[str, str] = {}
        self._stack = AsyncExitStack()
        self._lock = asyncio.Lock()
        self._log = logger.bind(component="regions")

    @property
    def valid_regions(self) -> frozenset[str]:
        return self._valid or frozenset()

    async def bootstrap(self) -> frozenset[str]:
        """Fetch the valid region set once. Failure is a configuration error."""
        async with self._lock:
            return await self._bootstrap()

    async def _bootstrap(self) -> frozenset[str]:
        if self._valid is not None:
            return self._valid
        try:
            ec2 = await self._client(self._home_region)
            response = await ec2.describe_regions(AllRegions=False)
        except (ClientError, BotoCoreError) as e:
            raise ConfigurationError(
                f"Cannot list EC2 regions via {self._home_region}: {e}"
            ) from e

        regions = frozenset(
            r["RegionName"] for r in response.get("Regions", []) if r.get("RegionName")
        )
        if not regions:
            raise ConfigurationError(f"No EC2 regions visible via {self._home_region}")

        self._valid = regions
        self._log.info("Discovered {n} EC2 regions", n=len(regions))
        return regions

    async def _client(self, region: str) -> Any:
        if region not in self._ec2:
            self._ec2[region] = await self._stack.enter_async_context(
                self._session.client("ec2", region_name=region)
            )
        return self._ec2[region]

    async def resolve(self, region: str | None) -> EC2RegionClient:
        """Return the cached client for ``region`` or raise ``RegionUnavailable``."""
        if region is None:
            raise RegionUnavailable(region, "host has no availability zone label")
        if client := self._clients.get(region):
            return client
        if reason := self._unavailable.get(region):
            raise RegionUnavailable(region, reason)

        async with self._lock:
            valid = await self._bootstrap()
            if client := self._clients.get(region):
                return client
            if region not in valid:
                reason = "not a valid region for this account"
                self._unavailable[region] = reason
                self._log.warning("Region {region} is not valid; hosts there will be skipped", region=region)
                raise RegionUnavailable(region, reason)

            client = EC2RegionClient(region, await self._client(region))
            self._clients[region] = client
            self._log.debug("Created EC2 client for {region}", region=region)
            return client

    async def close(self) -> None:
        self._clients.clear()
        self._ec2.clear()
        await self._stack.aclose()
