from __future__ import annotations

import asyncio
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from hostreaper.cloud.regions import EC2RegionClient, RegionResolver, region_from_zone
from hostreaper.errors import ConfigurationError, RegionUnavailable

from tests.conftest import VALID_REGIONS, FakeSession

pytestmark = [pytest.mark.unit]


class TestRegionFromZone:
    @pytest.mark.parametrize(
        ("zone", "region"),
        [
            ("us-west-1a", "us-west-1"),
            ("eu-central-1c", "eu-central-1"),
            ("ap-northeast-2d", "ap-northeast-2"),
            ("us-invalid-1", "us-invalid-1"),
            (" us-east-1b ", "us-east-1"),
            ("", None),
            (None, None),
        ],
    )
    def test_region_from_zone(self, zone, region):
        assert region_from_zone(zone) == region


class TestRegionResolver:
    @pytest.mark.asyncio
    async def test_bootstrap_lists_regions_once(self):
        session = FakeSession()
        resolver = RegionResolver(session, home_region="us-east-1")
        assert await resolver.bootstrap() == VALID_REGIONS
        assert await resolver.bootstrap() == VALID_REGIONS
        assert session.opened == ["us-east-1"]
        await resolver.close()

    @pytest.mark.asyncio
    async def test_bootstrap_failure_is_configuration_error(self):
        error = ClientError({"Error": {"Code": "AuthFailure", "Message": "bad creds"}}, "DescribeRegions")
        resolver = RegionResolver(FakeSession(describe_error=error), home_region="us-east-1")
        with pytest.raises(ConfigurationError):
            await resolver.bootstrap()
        await resolver.close()

    @pytest.mark.asyncio
    async def test_unreachable_endpoint_is_configuration_error(self):
        error = EndpointConnectionError(endpoint_url="https://ec2.us-east-1.amazonaws.com")
        resolver = RegionResolver(FakeSession(describe_error=error), home_region="us-east-1")
        with pytest.raises(ConfigurationError):
            await resolver.resolve("us-west-1")
        await resolver.close()

    @pytest.mark.asyncio
    async def test_resolve_caches_one_client_per_region(self):
        session = FakeSession()
        resolver = RegionResolver(session, home_region="us-east-1")
        a = await resolver.resolve("us-west-1")
        b = await resolver.resolve("us-west-1")
        assert a is b
        assert isinstance(a, EC2RegionClient)
        assert a.region == "us-west-1"
        assert session.opened.count("us-west-1") == 1
        await resolver.close()

    @pytest.mark.asyncio
    async def test_home_region_client_is_reused(self):
        session = FakeSession()
        resolver = RegionResolver(session, home_region="us-east-1")
        await resolver.bootstrap()
        await resolver.resolve("us-east-1")
        assert session.opened == ["us-east-1"]
        await resolver.close()

    @pytest.mark.asyncio
    async def test_invalid_region_fails_fast_without_poisoning_others(self):
        session = FakeSession()
        resolver = RegionResolver(session, home_region="us-east-1")
        with pytest.raises(RegionUnavailable) as exc_info:
            await resolver.resolve("us-invalid-1")
        assert exc_info.value.region == "us-invalid-1"
        with pytest.raises(RegionUnavailable):
            await resolver.resolve("us-invalid-1")

        assert (await resolver.resolve("us-west-2")).region == "us-west-2"
        assert "us-invalid-1" not in session.opened
        await resolver.close()

    @pytest.mark.asyncio
    async def test_missing_region_is_unavailable(self):
        resolver = RegionResolver(FakeSession(), home_region="us-east-1")
        with pytest.raises(RegionUnavailable):
            await resolver.resolve(None)
        await resolver.close()

    @pytest.mark.asyncio
    async def test_concurrent_resolve_builds_single_client(self):
        session = FakeSession()
        resolver = RegionResolver(session, home_region="us-east-1")
        clients = await asyncio.gather(*(resolver.resolve("eu-west-1") for _ in range(10)))
        assert all(c is clients[0] for c in clients)
        assert session.opened.count("eu-west-1") == 1
        await resolver.close()

    @pytest.mark.asyncio
    async def test_close_exits_every_client(self):
        session = FakeSession()
        resolver = RegionResolver(session, home_region="us-east-1")
        await resolver.resolve("us-west-1")
        await resolver.resolve("us-west-2")
        await resolver.close()
        assert sorted(session.closed) == ["us-east-1", "us-west-1", "us-west-2"]
