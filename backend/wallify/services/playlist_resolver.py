"""
Playlist resolution — decides what a display should show at a given instant.

Pure functions over a snapshot of assets and schedule rules; no I/O, no state.

Resolution order:
  1. Every enabled rule is evaluated against `now`, in stored order.
  2. Assets of matching rules are collected, skipping missing or disabled assets and
     keeping only the first occurrence of each asset.
  3. A non-empty matched set IS the playlist (scheduled assets are exclusive).
  4. Otherwise the playlist is every enabled asset that no rule references at all,
     ordered by order_index with store order breaking ties.
"""
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Protocol
from zoneinfo import ZoneInfo

from wallify.schemas.playlist import PlaylistEntry
from wallify.services.temporal import TemporalPredicate


class AssetLike(Protocol):
    id: Any
    kind: str
    enabled: bool
    order_index: int
    duration_seconds: float

    @property
    def playback_ref(self) -> str: ...


class RuleLike(Protocol):
    asset_id: Any
    enabled: bool

    @property
    def predicate(self) -> TemporalPredicate: ...


def to_local(now: datetime, timezone_name: str) -> datetime:
    """Convert an aware instant to the wall clock rules are written against."""
    if now.tzinfo is None:
        return now
    return now.astimezone(ZoneInfo(timezone_name))


def matching_rules(rules: Iterable[RuleLike], now: datetime) -> list[RuleLike]:
    return [r for r in rules if r.enabled and r.predicate.matches(now)]


def resolve_assets(
    assets: Sequence[AssetLike], rules: Sequence[RuleLike], now: datetime
) -> list[AssetLike]:
    """Return the assets eligible at `now`, in playback order."""
    by_id = {str(a.id): a for a in assets}

    scheduled: list[AssetLike] = []
    seen: set[str] = set()
    for rule in matching_rules(rules, now):
        key = str(rule.asset_id)
        asset = by_id.get(key)
        # Dangling references and disabled assets never contribute
        if asset is None or not asset.enabled or key in seen:
            continue
        seen.add(key)
        scheduled.append(asset)

    if scheduled:
        return scheduled

    referenced = {str(r.asset_id) for r in rules}
    unscheduled = [a for a in assets if a.enabled and str(a.id) not in referenced]
    # sorted() is stable, so equal order_index keeps store order
    return sorted(unscheduled, key=lambda a: a.order_index)


def resolve_playlist(
    assets: Sequence[AssetLike], rules: Sequence[RuleLike], now: datetime
) -> list[PlaylistEntry]:
    return [
        PlaylistEntry(
            id=str(a.id),
            kind=a.kind,
            source_ref=a.playback_ref,
            duration_seconds=a.duration_seconds,
        )
        for a in resolve_assets(assets, rules, now)
    ]
