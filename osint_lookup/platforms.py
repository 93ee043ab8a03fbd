from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

import httpx

from .models import PlatformResult
from .registry import PlatformSpec

logger = logging.getLogger(__name__)


def _format(template: str, username: str) -> str:
    return template.format(username=quote(username, safe=""))


def absent(spec: PlatformSpec) -> PlatformResult:
    return PlatformResult(platform_name=spec.name, exists=False)


async def _existence_check(client: httpx.AsyncClient, url: str) -> bool:
    res = await client.head(url)
    return res.status_code == 200


async def _enrichment_check(client: httpx.AsyncClient, spec: PlatformSpec, username: str) -> dict | None:
    res = await client.get(_format(spec.api_url or "", username), headers={"accept": "application/json"})
    if res.status_code < 200 or res.status_code >= 300:
        return None
    data = res.json()
    if spec.extractor is None:
        return {}
    return spec.extractor(data)


async def probe_platform(
    client: httpx.AsyncClient,
    spec: PlatformSpec,
    username: str,
    *,
    timeout_s: float | None = None,
) -> PlatformResult:
    """Best-effort lookup of ``username`` on one platform. Never raises on source failure.

    ``timeout_s`` bounds the whole call, body included.
    """
    profile_url = _format(spec.profile_url, username)
    try:
        if spec.method == "api":
            extra = await asyncio.wait_for(_enrichment_check(client, spec, username), timeout_s)
            exists = extra is not None
        else:
            extra = None
            exists = await asyncio.wait_for(_existence_check(client, profile_url), timeout_s)
    except (httpx.HTTPError, asyncio.TimeoutError, ValueError, TypeError, KeyError) as e:
        logger.debug("platform probe %s failed: %s", spec.name, type(e).__name__)
        return absent(spec)

    if not exists:
        return absent(spec)

    return PlatformResult(
        platform_name=spec.name,
        exists=True,
        profile_url=profile_url,
        username=username,
        extra=extra or {},
    )
