from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
DEFAULT_BREACH_USER_AGENT = "OSINTLookup/1.0"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class LookupSettings:
    """Per-process knobs shared by every probe. Immutable once built."""

    timeout_s: float = 8.0
    user_agent: str = DEFAULT_USER_AGENT
    breach_user_agent: str = DEFAULT_BREACH_USER_AGENT

    @classmethod
    def from_env(cls) -> "LookupSettings":
        timeout_s = max(1.0, min(60.0, _env_float("OSINT_PROBE_TIMEOUT_S", cls.timeout_s)))
        return cls(
            timeout_s=timeout_s,
            user_agent=os.getenv("OSINT_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
            breach_user_agent=os.getenv("OSINT_BREACH_USER_AGENT", "").strip() or DEFAULT_BREACH_USER_AGENT,
        )


def cors_allow_origins() -> list[str]:
    raw = os.getenv("OSINT_CORS_ORIGINS", "").strip()
    if not raw:
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def log_level() -> str:
    return (os.getenv("OSINT_LOG_LEVEL", "") or "INFO").strip().upper()
