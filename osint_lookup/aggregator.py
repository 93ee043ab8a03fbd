from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable

import httpx

from .breaches import probe_breaches
from .identity import probe_identity
from .models import BreachRecord, Evidence, IdentityResult, PlatformResult
from .platforms import absent, probe_platform
from .registry import DEFAULT_REGISTRY, PlatformSpec
from .settings import LookupSettings
from .validation import local_part

logger = logging.getLogger(__name__)


class Aggregator:
    """Fans one email out to every probe and joins on all of them.

    The registry and settings are fixed at construction. Nothing else is kept
    between calls: each ``gather_evidence`` opens its own HTTP client.
    """

    def __init__(
        self,
        registry: tuple[PlatformSpec, ...] = DEFAULT_REGISTRY,
        settings: LookupSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.registry = tuple(registry)
        self.settings = settings or LookupSettings()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.timeout_s),
            follow_redirects=True,
            headers={"user-agent": self.settings.user_agent},
            transport=self._transport,
        )

    async def _platforms(self, client: httpx.AsyncClient, username: str) -> tuple[PlatformResult, ...]:
        results = await asyncio.gather(
            *(probe_platform(client, spec, username, timeout_s=self.settings.timeout_s) for spec in self.registry),
            return_exceptions=True,
        )
        out: list[PlatformResult] = []
        for spec, value in zip(self.registry, results):
            if isinstance(value, BaseException):
                logger.warning("platform probe %s raised %s", spec.name, type(value).__name__)
                value = absent(spec)
            out.append(value)
        return tuple(out)

    async def gather_evidence(self, email: str) -> Evidence:
        t0 = time.perf_counter()
        timings: dict[str, int] = {}
        username = local_part(email)

        async def timed(name: str, aw: Awaitable[Any]) -> Any:
            start = time.perf_counter()
            try:
                return await aw
            finally:
                timings[name] = int((time.perf_counter() - start) * 1000)

        async with self._client() as client:
            identity, platforms, breaches = await asyncio.gather(
                timed("identity", probe_identity(client, email, timeout_s=self.settings.timeout_s)),
                timed("platforms", self._platforms(client, username)),
                timed("breaches", probe_breaches(
                    client, email, user_agent=self.settings.breach_user_agent, timeout_s=self.settings.timeout_s,
                )),
                return_exceptions=True,
            )

        if isinstance(identity, BaseException):
            logger.warning("identity probe raised %s", type(identity).__name__)
            identity = IdentityResult(exists=False)
        if isinstance(platforms, BaseException):
            logger.warning("platform probes raised %s", type(platforms).__name__)
            platforms = tuple(absent(spec) for spec in self.registry)
        if isinstance(breaches, BaseException):
            logger.warning("breach probe raised %s", type(breaches).__name__)
            breaches = ()

        timings["total"] = int((time.perf_counter() - t0) * 1000)
        logger.info("lookup finished in %sms: %s", timings["total"], summarize(tuple(breaches), platforms))
        return Evidence(
            email=email,
            identity=identity,
            platforms=platforms,
            breaches=tuple(breaches),
            timings_ms=timings,
        )


def summarize(breaches: tuple[BreachRecord, ...], platforms: tuple[PlatformResult, ...]) -> str:
    found = [p.platform_name for p in platforms if p.exists]
    return f"{len(found)} platform(s) [{', '.join(found)}], {len(breaches)} breach(es)"
