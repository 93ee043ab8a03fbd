from __future__ import annotations

import asyncio
import logging
import re
from datetime import date, datetime
from typing import Any
from urllib.parse import quote

import httpx

from .models import BreachRecord

logger = logging.getLogger(__name__)

XPOSEDORNOT_URL = "https://api.xposedornot.com/v1/check-email/{email}"
LEAKCHECK_URL = "https://leakcheck.io/api/public"

# Stand-in for a breach date the source did not report.
SENTINEL_DATE = date(2023, 1, 1)

_PARTIAL_DATE_RE = re.compile(r"^(\d{4})(?:-(\d{1,2}))?$")


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first(entry: dict, *keys: str) -> Any:
    for k in keys:
        v = entry.get(k)
        if not _missing(v):
            return v
    return None


def parse_breach_date(value: Any) -> date:
    """Parse the date shapes breach sources use; anything else is the sentinel."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return SENTINEL_DATE
    s = value.strip()
    m = _PARTIAL_DATE_RE.match(s)
    try:
        if m:
            return date(int(m.group(1)), int(m.group(2) or 1), 1)
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        return SENTINEL_DATE


def _as_count(value: Any) -> int | None:
    # Only whole, non-negative numbers count as a reported figure.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _count(entry: dict, *keys: str) -> int:
    for k in keys:
        n = _as_count(entry.get(k))
        if n is not None:
            return n
    return 0


_TRUTHY = {"true", "1", "yes", "y"}
_FALSY = {"false", "0", "no", "n"}


def _verified(value: Any, default: bool = True) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUTHY:
            return True
        if s in _FALSY:
            return False
    return default


def _classes(value: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(value, str):
        items = [c.strip() for c in value.split(";")]
    elif isinstance(value, (list, tuple)):
        items = [str(c).strip() for c in value if c is not None]
    else:
        return default
    items = [c for c in items if c]
    return tuple(items) if items else default


def _flatten(entries: list) -> list:
    out: list = []
    for e in entries:
        if isinstance(e, list):
            out.extend(_flatten(e))
        else:
            out.append(e)
    return out


def normalize_xposedornot(entry: Any) -> BreachRecord:
    if isinstance(entry, str):
        entry = {"name": entry}
    if not isinstance(entry, dict):
        entry = {}
    return BreachRecord(
        name=str(_first(entry, "name") or "Unknown Breach"),
        domain=str(_first(entry, "domain") or "unknown.com"),
        breach_date=parse_breach_date(_first(entry, "breach_date", "date")),
        discovered_date=parse_breach_date(_first(entry, "added_date", "date")),
        affected_count=_count(entry, "pwn_count", "exposed_records"),
        description=str(_first(entry, "description") or "Data breach detected"),
        data_classes=_classes(_first(entry, "data_classes", "exposed_data"), ("Email addresses",)),
        verified=_verified(entry.get("verified")),
    )


def normalize_leakcheck(source: Any) -> BreachRecord:
    if not isinstance(source, dict):
        source = {}
    name = _first(source, "name")
    when = parse_breach_date(_first(source, "date"))
    return BreachRecord(
        name=str(name or "Data Breach"),
        domain=str(_first(source, "domain") or "unknown.com"),
        breach_date=when,
        discovered_date=when,
        affected_count=_count(source, "entries"),
        description=f"Data breach from {name or 'unknown source'}",
        data_classes=("Email addresses", "Passwords"),
        verified=True,
    )


async def _query_xposedornot(client: httpx.AsyncClient, email: str, user_agent: str) -> list[BreachRecord] | None:
    res = await client.get(
        XPOSEDORNOT_URL.format(email=quote(email, safe="@")),
        headers={"user-agent": user_agent, "accept": "application/json"},
    )
    if not res.is_success:
        return None
    data = res.json()
    breaches = data.get("breaches") if isinstance(data, dict) else None
    if not isinstance(breaches, list):
        return None
    return [normalize_xposedornot(b) for b in _flatten(breaches)]


async def _query_leakcheck(client: httpx.AsyncClient, email: str, user_agent: str) -> list[BreachRecord] | None:
    res = await client.get(LEAKCHECK_URL, params={"check": email}, headers={"user-agent": user_agent})
    if not res.is_success:
        return None
    data = res.json()
    if not isinstance(data, dict) or not data.get("found"):
        return None
    sources = data.get("sources")
    if not isinstance(sources, list):
        return None
    return [normalize_leakcheck(s) for s in sources]


async def probe_breaches(
    client: httpx.AsyncClient,
    email: str,
    *,
    user_agent: str,
    timeout_s: float | None = None,
) -> tuple[BreachRecord, ...]:
    """Primary source first, one fallback; an empty tuple covers both "clean" and "unreachable"."""
    for name, query in (("xposedornot", _query_xposedornot), ("leakcheck", _query_leakcheck)):
        try:
            records = await asyncio.wait_for(query(client, email, user_agent), timeout_s)
        except (httpx.HTTPError, asyncio.TimeoutError, ValueError, TypeError, AttributeError) as e:
            logger.debug("breach source %s failed: %s", name, type(e).__name__)
            continue
        if records is not None:
            return tuple(records)
    return ()
