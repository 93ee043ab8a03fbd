from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Confidence = Literal["verified", "low"]


class RiskTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class LookupRequest(_Frozen):
    email: str = Field(..., min_length=3)


class IdentityResult(_Frozen):
    exists: bool
    display_name: str | None = None
    profile_picture: str | None = None
    account_id: str | None = None
    last_activity: datetime | None = None
    # "low" means display_name is only the email local-part.
    confidence: Confidence | None = None


class PlatformResult(_Frozen):
    platform_name: str
    exists: bool
    profile_url: str | None = None
    username: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)


class BreachRecord(_Frozen):
    name: str
    domain: str
    breach_date: date
    discovered_date: date
    affected_count: int = Field(0, ge=0)
    description: str
    data_classes: tuple[str, ...]
    verified: bool


class Evidence(_Frozen):
    email: str
    identity: IdentityResult
    platforms: tuple[PlatformResult, ...]
    breaches: tuple[BreachRecord, ...]
    timings_ms: dict[str, int] = Field(default_factory=dict)


class Report(_Frozen):
    email: str
    identity: IdentityResult | None = None
    platforms: tuple[PlatformResult, ...]
    breaches: tuple[BreachRecord, ...]
    reputation_score: int = Field(..., ge=0, le=100)
    risk_tier: RiskTier

    # metadata
    analyzed_at: str
    timings_ms: dict[str, int] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    error: str
