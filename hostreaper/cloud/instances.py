"""Classify the cloud instance behind a host.

EC2 reports existence and lifecycle state through queries that can fail
independently. Right after an instance is purged, the API may report it as
non-existent while the state read still errors rather than returning
cleanly. That disagreement is classified as ``Purged`` and never surfaces
as an error; it is the only failure the resolver absorbs.
"""

from __future__ import annotations

from botocore.exceptions import ClientError
from loguru import logger

from hostreaper.constants import InstanceState
from hostreaper.errors import InstanceNotFoundError, InstanceStateUnavailable
from hostreaper.types import (
    InstanceStatus,
    Live,
    NotFound,
    Purged,
    RegionClient,
    Terminated,
)

_PURGE_RACE_ERRORS = (InstanceStateUnavailable, InstanceNotFoundError, ClientError)


def classify_state(instance_id: str, state: str) -> Terminated | Live:
    """Map an EC2 lifecycle state name to a classification."""
    if state == InstanceState.TERMINATED:
        return Terminated(instance_id)
    return Live(instance_id, state)


class InstanceStatusResolver:
    """Stateless classifier; safe to share across hosts and passes.

    Args:
        strict_purge_race: When set, only the documented lookup errors
            count as the purge race; anything else raised by the state read
            propagates as a transient failure.
    """

    def __init__(self, *, strict_purge_race: bool = False) -> None:
        self._strict = strict_purge_race
        self._log = logger.bind(component="instances")

    async def classify(self, instance_id: str | None, client: RegionClient) -> InstanceStatus:
        if not instance_id:
            return NotFound(None)

        log = self._log.bind(instance_id=instance_id, region=client.region)

        try:
            exists = await client.instance_exists(instance_id)
        except InstanceNotFoundError:
            log.debug("Instance not found")
            return NotFound(instance_id)

        if exists:
            return classify_state(instance_id, await client.instance_lifecycle_state(instance_id))

        try:
            state = await client.instance_lifecycle_state(instance_id)
        except _PURGE_RACE_ERRORS as e:
            log.debug("Instance purged: {err}", err=e)
            return Purged(instance_id, reason=str(e))
        except Exception as e:
            if self._strict:
                raise
            log.warning("Treating state read failure as purged: {err}", err=e)
            return Purged(instance_id, reason=str(e))

        return classify_state(instance_id, state)
