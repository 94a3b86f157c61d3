"""EC2 adapters: region clients and instance classification."""

from .instances import InstanceStatusResolver, classify_state
from .regions import EC2RegionClient, RegionResolver, region_from_zone

__all__ = [
    "EC2RegionClient",
    "InstanceStatusResolver",
    "RegionResolver",
    "classify_state",
    "region_from_zone",
]
