import asyncio
import time

import httpx
import pytest

from osint_lookup.aggregator import Aggregator
from osint_lookup.registry import DEFAULT_REGISTRY, PlatformSpec
from osint_lookup.settings import LookupSettings

from .conftest import CountingTransport, delayed, down, routed


@pytest.mark.asyncio
async def test_all_sources_down(aggregator_factory):
    evidence = await aggregator_factory(down).gather_evidence("jane@example.com")

    assert evidence.identity.exists is False
    assert [p.platform_name for p in evidence.platforms] == [s.name for s in DEFAULT_REGISTRY]
    assert not any(p.exists for p in evidence.platforms)
    assert evidence.breaches == ()
    assert set(evidence.timings_ms) == {"identity", "platforms", "breaches", "total"}


@pytest.mark.asyncio
async def test_one_entry_per_platform_in_registry_order(aggregator_factory):
    handler = routed({
        "api.github.com": lambda r: httpx.Response(200, json={"followers": 1}),
        "steamcommunity.com": lambda r: httpx.Response(200),
        "twitter.com": lambda r: httpx.Response(500),
    })
    evidence = await aggregator_factory(handler).gather_evidence("jane@example.com")

    assert [p.platform_name for p in evidence.platforms] == [s.name for s in DEFAULT_REGISTRY]
    found = {p.platform_name for p in evidence.platforms if p.exists}
    assert found == {"GitHub", "Steam"}


@pytest.mark.asyncio
async def test_probe_bug_is_isolated(aggregator_factory):
    def explode(payload):
        raise RuntimeError("boom")

    registry = (
        PlatformSpec("Broken", "https://broken.test/{username}", method="api",
                     api_url="https://broken.test/api/{username}", extractor=explode),
        PlatformSpec("Fine", "https://fine.test/{username}"),
    )
    handler = routed({
        "broken.test": lambda r: httpx.Response(200, json={}),
        "fine.test": lambda r: httpx.Response(200),
    })
    evidence = await aggregator_factory(handler, registry=registry).gather_evidence("jane@example.com")

    assert [(p.platform_name, p.exists) for p in evidence.platforms] == [("Broken", False), ("Fine", True)]


@pytest.mark.asyncio
async def test_probes_run_concurrently(aggregator_factory):
    delay = 0.2
    aggregator = aggregator_factory(delayed(delay))

    start = time.perf_counter()
    evidence = await aggregator.gather_evidence("jane@example.com")
    elapsed = time.perf_counter() - start

    # 10 platforms + 4 identity signals + 2 chained breach sources.
    sequential = delay * (len(DEFAULT_REGISTRY) + 4 + 2)
    assert elapsed < sequential / 3
    assert evidence.timings_ms["total"] < sequential * 1000 / 3


@pytest.mark.asyncio
async def test_each_call_uses_same_input(settings):
    transport = CountingTransport(lambda r: httpx.Response(404))
    aggregator = Aggregator(DEFAULT_REGISTRY, settings, transport=transport)

    await aggregator.gather_evidence("jane@example.com")

    hosts = {r.url.host for r in transport.calls}
    assert "api.github.com" in hosts
    assert "api.xposedornot.com" in hosts
    assert "picasaweb.google.com" in hosts
    assert all("jane" in str(r.url) or r.url.host == "accounts.google.com" for r in transport.calls)


@pytest.mark.asyncio
async def test_cancellation_stops_outstanding_probes(aggregator_factory):
    aggregator = aggregator_factory(delayed(5.0))
    task = asyncio.create_task(aggregator.gather_evidence("jane@example.com"))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_stalled_sources_are_bounded_by_deadline():
    aggregator = Aggregator(DEFAULT_REGISTRY, LookupSettings(timeout_s=1.0), transport=httpx.MockTransport(delayed(30.0)))
    start = time.perf_counter()
    evidence = await aggregator.gather_evidence("jane@example.com")

    assert time.perf_counter() - start < 4.0
    assert evidence.identity.exists is False
    assert not any(p.exists for p in evidence.platforms)
    assert evidence.breaches == ()
