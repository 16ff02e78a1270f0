from __future__ import annotations

from datetime import date

from factories import make_benefit, make_subscription
from membership.domain.models import Frequency
from membership.services.billing_term import NEXT_RENEWAL
from membership.services.role_classifier import ACCOUNT_MANAGER, Role, Section
from membership.services.subscriber_overview import (
    UNKNOWN_LOCATION,
    annotate_subscription,
    build_subscriber_overview,
    split_customer_subscriptions,
)

INDEX = {"L-100": "loc-1"}
NAMES = {"loc-1": "Downtown"}


def test_annotate_subscription_combines_role_term_and_location(today) -> None:
    subscription = make_subscription(
        "s1",
        owner_ids=("A",),
        active_ids=("A", "B"),
        anchor_day=15,
        frequency=Frequency.MONTHLY,
        location_platform_id=["L-100"],
    )
    entitlements = [
        make_benefit("e1", subscription_id="s1", subscriber_id="A"),
        make_benefit("e2", subscription_id="s1", subscriber_id="B"),
    ]

    annotated = annotate_subscription(
        subscription, "A", today, entitlements=entitlements, platform_index=INDEX, location_names=NAMES
    )

    assert annotated.role is Role.OWNER_MANAGED
    assert annotated.section is Section.PRIMARY
    assert annotated.account_type == ACCOUNT_MANAGER
    assert annotated.term.date == date(2024, 7, 15)
    assert annotated.term.label == NEXT_RENEWAL
    assert annotated.current is True
    assert annotated.location_name == "Downtown"
    assert [e.id for e in annotated.entitlements] == ["e1"]


def test_overview_groups_by_currency_and_section(today) -> None:
    managed = make_subscription(
        "s1", owner_ids=("A",), active_ids=("A", "B"), anchor_day=15, frequency=Frequency.MONTHLY
    )
    subscriptions = [
        managed,
        make_subscription("s2", owner_ids=("A",), active_ids=("C",), end_date=date(2024, 12, 31)),
        make_subscription("s3", owner_ids=("D",), active_ids=("D", "A"), end_date=date(2023, 1, 1)),
        make_subscription("s4", owner_ids=("D",), active_ids=("D",), end_date=date(2024, 12, 31)),
        make_subscription("s5", owner_ids=("A",), location_platform_id="L-404"),
        managed,
    ]

    overview = build_subscriber_overview("A", subscriptions, [], INDEX, NAMES, today)

    assert [a.subscription.id for a in overview.section(Section.PRIMARY)] == ["s1"]
    assert [a.subscription.id for a in overview.section(Section.GIFTED)] == ["s2"]
    assert overview.section(Section.SHARED) == []
    assert [a.subscription.id for a in overview.section(Section.SHARED, current=False)] == ["s3"]
    past_primary = overview.section(Section.PRIMARY, current=False)
    assert [a.subscription.id for a in past_primary] == ["s5"]
    assert past_primary[0].location_name == UNKNOWN_LOCATION
    assert overview.is_empty is False


def test_overview_for_unrelated_subscriber_is_empty(today) -> None:
    subscriptions = [make_subscription("s1", owner_ids=("A",), active_ids=("A",))]
    assert build_subscriber_overview("Z", subscriptions, [], {}, {}, today).is_empty is True


def test_split_customer_subscriptions_collects_shared_benefits(today) -> None:
    subscriptions = [
        make_subscription("s1", anchor_day=3, frequency=Frequency.MONTHLY),
        make_subscription("s3", end_date=date(2023, 1, 1)),
        make_subscription("s6"),
    ]
    benefits = [
        make_benefit("e1", subscription_id="s1"),
        make_benefit("e9", subscription_id="s-other", subscription_code="654321", subscription_end_date=date(2024, 9, 1)),
        make_benefit("e10", subscription_id="s-other"),
        make_benefit("e11"),
    ]

    split = split_customer_subscriptions(subscriptions, benefits, today)

    assert [(s.id, [b.id for b in bs]) for s, bs in split.current] == [("s1", ["e1"])]
    assert [(s.id, bs) for s, bs in split.previous] == [("s3", [])]
    assert all(s.id != "s6" for s, _ in split.current + split.previous)
    assert len(split.shared) == 1
    shared = split.shared[0]
    assert shared.id == "s-other"
    assert shared.code == "654321"
    assert shared.end_date == date(2024, 9, 1)
    assert [b.id for b in shared.entitlements] == ["e9", "e10"]
