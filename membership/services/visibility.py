"""Location-permission scoping of what an admin viewer may see."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from membership.domain.models import Location, Subscriber, Subscription
from membership.repositories.subscription_repo import SubscriptionRepository

from .location_mapper import build_platform_index, location_name_index, resolve_location_id

logger = logging.getLogger(__name__)


class PermissionDescriptor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    view: bool = Field(default=True, description="May the viewer see subscriptions at all")
    all_locations: bool = Field(default=False, validation_alias=AliasChoices("allLocations", "all_locations"))
    allowed_location_ids: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("allowedLocations", "allowedLocationIds", "allowed_location_ids"),
    )


def permitted_locations(descriptor: PermissionDescriptor, all_locations: Iterable[Location]) -> list[Location]:
    locations = list(all_locations)
    if not descriptor.view:
        return []
    if descriptor.all_locations:
        return locations
    if descriptor.allowed_location_ids:
        allowed = set(descriptor.allowed_location_ids)
        return [location for location in locations if location.id in allowed]
    return []


def filter_subscriptions(
    subscriptions: Iterable[Subscription],
    permitted_location_ids: Iterable[str],
    platform_index: Mapping[str, str],
) -> list[Subscription]:
    permitted = set(permitted_location_ids)
    if not permitted:
        return []
    kept: list[Subscription] = []
    for subscription in subscriptions:
        location_id = resolve_location_id(subscription.location_platform_id, platform_index)
        if location_id is not None and location_id in permitted:
            kept.append(subscription)
    return kept


def filter_subscribers(
    subscribers: Iterable[Subscriber],
    permitted_subscriptions: Iterable[Subscription],
) -> list[Subscriber]:
    referenced: set[str] = set()
    for subscription in permitted_subscriptions:
        referenced.update(subscription.owner_ids)
        referenced.update(subscription.active_ids)
    if not referenced:
        return []
    return [subscriber for subscriber in subscribers if subscriber.id in referenced]


@dataclass(frozen=True)
class AdminScope:
    locations: list[Location] = field(default_factory=list)
    subscriptions: list[Subscription] = field(default_factory=list)
    subscribers: list[Subscriber] = field(default_factory=list)
    platform_index: dict[str, str] = field(default_factory=dict)
    location_names: dict[str, str] = field(default_factory=dict)

    @property
    def location_ids(self) -> set[str]:
        return {location.id for location in self.locations}


class VisibilityFilter:
    def __init__(self, repository: SubscriptionRepository) -> None:
        self._repo = repository

    async def scope(self, descriptor: PermissionDescriptor) -> AdminScope:
        if not descriptor.view:
            return AdminScope()

        locations, subscriptions, subscribers = await asyncio.gather(
            self._repo.list_locations(),
            self._repo.list_subscriptions(),
            self._repo.list_subscribers(),
        )
        platform_index = build_platform_index(locations)
        names = location_name_index(locations)
        allowed = permitted_locations(descriptor, locations)

        if descriptor.all_locations:
            # Unrestricted viewers also see rows whose location id is unmapped.
            visible_subscriptions = list(subscriptions)
            visible_subscribers = list(subscribers)
        else:
            visible_subscriptions = filter_subscriptions(subscriptions, [loc.id for loc in allowed], platform_index)
            visible_subscribers = filter_subscribers(subscribers, visible_subscriptions)

        logger.debug(
            "Admin scope resolved locations=%d subscriptions=%d/%d subscribers=%d/%d",
            len(allowed),
            len(visible_subscriptions),
            len(subscriptions),
            len(visible_subscribers),
            len(subscribers),
        )
        return AdminScope(
            locations=allowed,
            subscriptions=visible_subscriptions,
            subscribers=visible_subscribers,
            platform_index=platform_index,
            location_names=names,
        )
