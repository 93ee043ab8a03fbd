"""
Google account probe.

Four public surfaces are asked independently whether the email is bound to a
Google account. Any one of them answering yes is enough; only the profile API
returns structured fields, the others just corroborate existence.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from .models import IdentityResult
from .validation import local_part

logger = logging.getLogger(__name__)

PROFILE_API_URL = "https://picasaweb.google.com/data/entry/api/user/{email}?alt=json"
SIGNIN_LOOKUP_URL = "https://accounts.google.com/_/signin/sl/lookup"
CALENDAR_EMBED_URL = "https://calendar.google.com/calendar/embed"
LEGACY_PROFILE_URL = "https://plus.google.com/+{handle}"


def _text(node: Any) -> str | None:
    # Feed values come wrapped as {"$t": "..."}.
    if isinstance(node, dict):
        value = node.get("$t")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_profile_entry(payload: Any) -> IdentityResult:
    entry = payload.get("entry") if isinstance(payload, dict) else None
    if not isinstance(entry, dict):
        entry = {}
    return IdentityResult(
        exists=True,
        display_name=_text(entry.get("gphoto$nickname")) or _text(entry.get("title")),
        profile_picture=_text(entry.get("gphoto$thumbnail")),
        account_id=_text(entry.get("gphoto$user")),
        last_activity=_parse_timestamp(_text(entry.get("updated"))),
        confidence="verified",
    )


async def _profile_api(client: httpx.AsyncClient, email: str) -> IdentityResult | None:
    res = await client.get(PROFILE_API_URL.format(email=quote(email, safe="@")))
    if res.status_code < 200 or res.status_code >= 300:
        return None
    return parse_profile_entry(res.json())


async def _signin_lookup(client: httpx.AsyncClient, email: str) -> bool:
    res = await client.post(
        SIGNIN_LOOKUP_URL,
        data={
            "continue": "https://accounts.google.com/",
            "Email": email,
            "Passwd": "",
            "signIn": "Sign in",
            "PersistentCookie": "yes",
        },
    )
    return res.status_code != 404


async def _calendar_embed(client: httpx.AsyncClient, email: str) -> bool:
    res = await client.head(CALENDAR_EMBED_URL, params={"src": email})
    return res.is_success


async def _legacy_profile(client: httpx.AsyncClient, email: str) -> bool:
    res = await client.head(LEGACY_PROFILE_URL.format(handle=quote(local_part(email), safe="")))
    return res.is_success


async def _signal(name: str, coro, timeout_s: float | None):
    try:
        return await asyncio.wait_for(coro, timeout_s)
    except (httpx.HTTPError, asyncio.TimeoutError, ValueError, TypeError) as e:
        logger.debug("identity signal %s failed: %s", name, type(e).__name__)
        return None


async def probe_identity(client: httpx.AsyncClient, email: str, *, timeout_s: float | None = None) -> IdentityResult:
    profile, signin, calendar, legacy = await asyncio.gather(
        _signal("profile_api", _profile_api(client, email), timeout_s),
        _signal("signin", _signin_lookup(client, email), timeout_s),
        _signal("calendar", _calendar_embed(client, email), timeout_s),
        _signal("legacy_profile", _legacy_profile(client, email), timeout_s),
    )

    if isinstance(profile, IdentityResult):
        return profile

    if signin or calendar or legacy:
        # Weak corroboration only: the name is a guess from the address.
        return IdentityResult(exists=True, display_name=local_part(email), confidence="low")

    return IdentityResult(exists=False)
