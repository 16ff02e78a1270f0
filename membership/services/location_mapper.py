"""Unify per-platform location identifiers under one canonical location id."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from membership.domain.models import Location
from membership.domain.normalize import normalize_key

logger = logging.getLogger(__name__)

PlatformIndex = Mapping[str, str]


def build_platform_index(locations: Iterable[Location]) -> dict[str, str]:
    """Map every non-empty platform id of every location to its canonical id."""
    index: dict[str, str] = {}
    for location in locations:
        if not location.id:
            continue
        for raw in location.platform_ids.values():
            key = normalize_key(raw)
            if not key:
                continue
            previous = index.get(key)
            if previous is not None and previous != location.id:
                logger.warning(
                    "Platform location id claimed by two locations key=%s kept=%s ignored=%s",
                    key,
                    previous,
                    location.id,
                )
                continue
            index[key] = location.id
    return index


def resolve_location_id(raw: Any, index: PlatformIndex) -> Optional[str]:
    key = normalize_key(raw)
    if not key:
        return None
    return index.get(key)


def location_name_index(locations: Iterable[Location]) -> dict[str, str]:
    return {location.id: location.name for location in locations if location.id and location.name}
