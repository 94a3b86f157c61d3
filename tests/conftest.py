from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import replace
from types import MappingProxyType
from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError

from hostreaper.config import ReaperConfig
from hostreaper.constants import (
    DEFAULT_AVAILABILITY_ZONE_LABEL,
    DEFAULT_INSTANCE_ID_LABEL,
    Action,
    AgentState,
)
from hostreaper.errors import (
    InstanceNotFoundError,
    InstanceStateUnavailable,
    OrchestratorError,
    RegionUnavailable,
)
from hostreaper.reaper.state_machine import expected_state
from hostreaper.types import Host

VALID_REGIONS = frozenset({
    "ap-south-1", "eu-west-1", "ap-northeast-2", "ap-northeast-1", "sa-east-1",
    "ap-southeast-1", "ap-southeast-2", "eu-central-1", "us-east-1", "us-east-2",
    "us-west-1", "us-west-2",
})

# Cloud-side fixtures: None = unknown to the API, "" = purge race, else state name
PURGED = ""


def make_host(
    hostname: str,
    *,
    state: str = "active",
    instance_id: str | None = "__hostname__",
    zone: str | None = "us-west-1a",
    instance_id_label: str = DEFAULT_INSTANCE_ID_LABEL,
    az_label: str = DEFAULT_AVAILABILITY_ZONE_LABEL,
) -> Host:
    labels: dict[str, str] = {}
    if instance_id == "__hostname__":
        instance_id = f"i-{hostname}"
    if instance_id is not None:
        labels[instance_id_label] = instance_id
    if zone is not None:
        labels[az_label] = zone
    return Host(
        id=f"1h{hostname}",
        hostname=hostname,
        state=state,
        labels=MappingProxyType(labels),
    )


class FakeRegionClient:
    def __init__(self, region: str, instances: dict[str, str | None]) -> None:
        self.region = region
        self._instances = instances
        self.calls: list[tuple[str, str]] = []

    async def instance_exists(self, instance_id: str) -> bool:
        self.calls.append(("exists", instance_id))
        match self._instances.get(instance_id):
            case None:
                raise InstanceNotFoundError(instance_id)
            case "":
                return False
            case _:
                return True

    async def instance_lifecycle_state(self, instance_id: str) -> str:
        self.calls.append(("state", instance_id))
        match self._instances.get(instance_id):
            case None:
                raise InstanceNotFoundError(instance_id)
            case "":
                raise InstanceStateUnavailable(instance_id, "Instance has been purged in AWS")
            case state:
                return state


class FakeSession:
    """Stands in for ``aioboto3.Session``; records every client opened and closed.

    ``instances`` maps instance ids to state names; any other id gets
    ``InvalidInstanceID.NotFound``.
    """

    def __init__(
        self,
        regions=VALID_REGIONS,
        describe_error: Exception | None = None,
        instances: dict[str, str] | None = None,
    ) -> None:
        self._regions = regions
        self._describe_error = describe_error
        self._instances = instances or {}
        self.opened: list[str] = []
        self.closed: list[str] = []

    def _describe_instances(self, InstanceIds: list[str]) -> dict:
        [instance_id] = InstanceIds
        if instance_id not in self._instances:
            raise ClientError(
                {"Error": {"Code": "InvalidInstanceID.NotFound", "Message": instance_id}},
                "DescribeInstances",
            )
        return {"Reservations": [{"Instances": [
            {"InstanceId": instance_id, "State": {"Name": self._instances[instance_id]}},
        ]}]}

    def client(self, service: str, region_name: str):
        assert service == "ec2"

        @asynccontextmanager
        async def ctx():
            ec2 = MagicMock()
            if self._describe_error:
                ec2.describe_regions = AsyncMock(side_effect=self._describe_error)
            else:
                ec2.describe_regions = AsyncMock(return_value={
                    "Regions": [{"RegionName": r, "Endpoint": f"ec2.{r}.amazonaws.com"} for r in self._regions],
                })
            ec2.describe_instances = AsyncMock(side_effect=self._describe_instances)
            self.opened.append(region_name)
            try:
                yield ec2
            finally:
                self.closed.append(region_name)

        return ctx()


class FakeRegions:
    def __init__(self, instances: dict[str, str | None], valid: frozenset[str] = VALID_REGIONS) -> None:
        self._instances = instances
        self._valid = valid
        self.clients: dict[str, FakeRegionClient] = {}

    async def resolve(self, region: str | None) -> FakeRegionClient:
        if region is None or region not in self._valid:
            raise RegionUnavailable(region)
        if region not in self.clients:
            self.clients[region] = FakeRegionClient(region, self._instances)
        return self.clients[region]

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [c for client in self.clients.values() for c in client.calls]


class FakeOrchestrator:
    def __init__(
        self,
        reconnecting: list[Host] | None = None,
        disconnected: list[Host] | None = None,
    ) -> None:
        self.hosts: dict[AgentState, list[Host]] = {
            AgentState.RECONNECTING: list(reconnecting or []),
            AgentState.DISCONNECTED: list(disconnected or []),
        }
        self.actions: list[tuple[str, str]] = []
        self.list_calls: list[tuple[str, int]] = []
        self.reject: set[str] = set()
        self.fail_listing = False

    async def list_hosts(self, agent_state: AgentState | str, limit: int = 100) -> list[Host]:
        self.list_calls.append((str(agent_state), limit))
        if self.fail_listing:
            raise OrchestratorError(503, "unavailable")
        return list(self.hosts[AgentState(agent_state)])

    async def perform_action(self, host: Host, action: Action | str) -> Host:
        action = Action(action)
        if host.hostname in self.reject:
            raise OrchestratorError(422, f"cannot {action} {host.hostname}")
        self.actions.append((host.hostname, action.value))
        updated = replace(host, state=str(expected_state(action)))
        for hosts in self.hosts.values():
            for i, h in enumerate(hosts):
                if h.hostname == host.hostname:
                    hosts[i] = updated
        return updated

    def actions_for(self, hostname: str) -> list[str]:
        return [a for h, a in self.actions if h == hostname]


@pytest.fixture
def config() -> ReaperConfig:
    return ReaperConfig(url="http://rancher.test/v1", interval_secs=-1)
