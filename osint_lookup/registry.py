"""
Registry of platform probes.

Each entry says where a candidate username might live on a platform and how
to check it: a cheap HEAD against the public profile page ("head"), or a GET
against a structured account API whose payload also yields metadata ("api").
The registry is a plain immutable tuple so callers (and tests) can hand the
aggregator a reduced or stubbed list.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal

CheckMethod = Literal["head", "api"]

# Returns the platform-specific metadata, or None when the payload says there
# is no such account.
Extractor = Callable[[Any], "dict[str, Any] | None"]


@dataclass(frozen=True)
class PlatformSpec:
    name: str
    profile_url: str
    method: CheckMethod = "head"
    api_url: str | None = None
    extractor: Extractor | None = None

    def __post_init__(self) -> None:
        if self.method == "api" and not self.api_url:
            raise ValueError(f"{self.name}: api checks need an api_url")


def _pick(source: Any, keys: tuple[str, ...]) -> dict[str, Any]:
    if not isinstance(source, dict):
        return {}
    return {k: source[k] for k in keys if source.get(k) is not None}


def github_extra(payload: Any) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        return None
    return _pick(payload, ("public_repos", "followers", "created_at", "bio"))


def reddit_extra(payload: Any) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        return None
    return _pick(payload.get("data"), ("comment_karma", "link_karma", "created_utc"))


def twitch_extra(payload: Any) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        return None
    users = payload.get("data")
    if not isinstance(users, list) or not users:
        return None
    return _pick(users[0], ("display_name", "created_at", "view_count", "broadcaster_type"))


DEFAULT_REGISTRY: tuple[PlatformSpec, ...] = (
    PlatformSpec(
        "GitHub",
        "https://github.com/{username}",
        method="api",
        api_url="https://api.github.com/users/{username}",
        extractor=github_extra,
    ),
    PlatformSpec("Twitter", "https://twitter.com/{username}"),
    PlatformSpec("Instagram", "https://instagram.com/{username}"),
    PlatformSpec("LinkedIn", "https://linkedin.com/in/{username}"),
    PlatformSpec(
        "Reddit",
        "https://reddit.com/user/{username}",
        method="api",
        api_url="https://www.reddit.com/user/{username}/about.json",
        extractor=reddit_extra,
    ),
    PlatformSpec("YouTube", "https://youtube.com/@{username}"),
    PlatformSpec("TikTok", "https://tiktok.com/@{username}"),
    PlatformSpec("Pinterest", "https://pinterest.com/{username}"),
    PlatformSpec(
        "Twitch",
        "https://twitch.tv/{username}",
        method="api",
        api_url="https://api.twitch.tv/helix/users?login={username}",
        extractor=twitch_extra,
    ),
    PlatformSpec("Steam", "https://steamcommunity.com/id/{username}"),
)
