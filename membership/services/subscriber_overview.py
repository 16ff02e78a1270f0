"""Per-viewer annotation and grouping of subscriptions for display."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional

from membership.domain.models import Benefit, Subscription

from .billing_term import TermInfo, is_current, term_info
from .location_mapper import resolve_location_id
from .role_classifier import Role, Section, account_type, classify_role, role_section

UNKNOWN_LOCATION = "Unknown Location"


@dataclass(frozen=True)
class AnnotatedSubscription:
    subscription: Subscription
    role: Role
    account_type: Optional[str]
    term: TermInfo
    current: bool
    location_name: str
    entitlements: list[Benefit] = field(default_factory=list)

    @property
    def section(self) -> Optional[Section]:
        return role_section(self.role)


def annotate_subscription(
    subscription: Subscription,
    viewer_id: str,
    today: date,
    *,
    entitlements: Iterable[Benefit] = (),
    platform_index: Mapping[str, str] | None = None,
    location_names: Mapping[str, str] | None = None,
) -> AnnotatedSubscription:
    location_id = resolve_location_id(subscription.location_platform_id, platform_index or {})
    location_name = (location_names or {}).get(location_id or "", UNKNOWN_LOCATION)
    own_entitlements = [
        benefit
        for benefit in entitlements
        if benefit.subscription_id == subscription.id and benefit.subscriber_id == viewer_id
    ]
    return AnnotatedSubscription(
        subscription=subscription,
        role=classify_role(subscription.owner_id, subscription.active_ids, viewer_id),
        account_type=account_type(subscription.owner_id, subscription.active_ids, viewer_id),
        term=term_info(subscription, today),
        current=is_current(subscription, today),
        location_name=location_name,
        entitlements=own_entitlements,
    )


@dataclass
class SubscriberOverview:
    subscriber_id: str
    current: dict[Section, list[AnnotatedSubscription]] = field(default_factory=lambda: defaultdict(list))
    past: dict[Section, list[AnnotatedSubscription]] = field(default_factory=lambda: defaultdict(list))

    def section(self, section: Section, *, current: bool = True) -> list[AnnotatedSubscription]:
        groups = self.current if current else self.past
        return list(groups.get(section, []))

    @property
    def is_empty(self) -> bool:
        return not any(self.current.values()) and not any(self.past.values())


def build_subscriber_overview(
    subscriber_id: str,
    subscriptions: Iterable[Subscription],
    entitlements: Iterable[Benefit],
    platform_index: Mapping[str, str],
    location_names: Mapping[str, str],
    today: date,
) -> SubscriberOverview:
    """Group a subscriber's subscriptions into current/past x primary/gifted/shared."""
    entitlements = list(entitlements)
    overview = SubscriberOverview(subscriber_id=subscriber_id)
    seen: set[str] = set()
    for subscription in subscriptions:
        if subscription.id in seen:
            continue
        if subscriber_id not in subscription.owner_ids and subscriber_id not in subscription.active_ids:
            continue
        seen.add(subscription.id)

        annotated = annotate_subscription(
            subscription,
            subscriber_id,
            today,
            entitlements=entitlements,
            platform_index=platform_index,
            location_names=location_names,
        )
        section = annotated.section
        if section is None:
            continue
        groups = overview.current if annotated.current else overview.past
        groups[section].append(annotated)
    return overview


@dataclass(frozen=True)
class SharedSubscription:
    """A subscription the customer only reaches through benefits issued to them."""

    id: str
    code: Optional[str]
    end_date: Optional[date]
    entitlements: list[Benefit]


@dataclass(frozen=True)
class CustomerSubscriptions:
    current: list[tuple[Subscription, list[Benefit]]]
    previous: list[tuple[Subscription, list[Benefit]]]
    shared: list[SharedSubscription]


def split_customer_subscriptions(
    subscriptions: Iterable[Subscription],
    benefits: Iterable[Benefit],
    today: date,
) -> CustomerSubscriptions:
    benefits = list(benefits)
    by_subscription: dict[str, list[Benefit]] = defaultdict(list)
    for benefit in benefits:
        if benefit.subscription_id:
            by_subscription[benefit.subscription_id].append(benefit)

    current: list[tuple[Subscription, list[Benefit]]] = []
    previous: list[tuple[Subscription, list[Benefit]]] = []
    owned_ids: set[str] = set()
    for subscription in subscriptions:
        owned_ids.add(subscription.id)
        entry = (subscription, by_subscription.get(subscription.id, []))
        if is_current(subscription, today):
            current.append(entry)
        elif subscription.end_date is not None:
            # Ended. Rows with neither anchor nor end date appear in no list.
            previous.append(entry)

    shared: list[SharedSubscription] = []
    for subscription_id, group in by_subscription.items():
        if subscription_id in owned_ids:
            continue
        first = group[0]
        shared.append(
            SharedSubscription(
                id=subscription_id,
                code=first.subscription_code,
                end_date=first.subscription_end_date,
                entitlements=group,
            )
        )
    return CustomerSubscriptions(current=current, previous=previous, shared=shared)
