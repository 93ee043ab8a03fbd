from __future__ import annotations

from datetime import datetime, timezone

from .models import Evidence, Report, RiskTier

BASE_SCORE = 50
IDENTITY_BONUS = 20
PER_PLATFORM_BONUS = 5
MAX_PLATFORM_BONUS = 25
PER_BREACH_PENALTY = 15


def _clamp_score(score: int) -> int:
    return max(0, min(100, int(score)))


def compute_score(identity_exists: bool, platform_count: int, breach_count: int) -> int:
    score = BASE_SCORE
    if identity_exists:
        score += IDENTITY_BONUS
    score += min(PER_PLATFORM_BONUS * platform_count, MAX_PLATFORM_BONUS)
    score -= PER_BREACH_PENALTY * breach_count
    return _clamp_score(score)


def risk_tier(score: int) -> RiskTier:
    if score >= 80:
        return RiskTier.LOW
    if score >= 60:
        return RiskTier.MEDIUM
    if score >= 30:
        return RiskTier.HIGH
    return RiskTier.CRITICAL


def score_report(evidence: Evidence, *, analyzed_at: datetime | None = None) -> Report:
    platform_count = sum(1 for p in evidence.platforms if p.exists)
    score = compute_score(evidence.identity.exists, platform_count, len(evidence.breaches))
    stamp = analyzed_at or datetime.now(timezone.utc)
    return Report(
        email=evidence.email,
        identity=evidence.identity,
        platforms=evidence.platforms,
        breaches=evidence.breaches,
        reputation_score=score,
        risk_tier=risk_tier(score),
        analyzed_at=stamp.isoformat(),
        timings_ms=dict(evidence.timings_ms),
    )
