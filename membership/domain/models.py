"""Membership records parsed from backing-store rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .normalize import first_text, id_list, parse_date, parse_datetime, parse_day

# Column labels used by the backing store.
SUBSCRIPTION_ID = "Subscription ID"
SUBSCRIBER_ID = "Subscriber ID"
ENTITLEMENT_ID = "Entitlement ID"
LOCATION_ID = "Location ID"
LOCATION_NAME = "Location Name"
OWNER_IDS = "Linked: Subscriber ID in Subscribers"
ACTIVE_IDS = "Linked: Active Subscriber ID in Subscribers"
PLAN_IDS = "Linked: Plan ID in Plans"
ENTITLEMENT_IDS = "Linked: Entitlement ID in Entitlements"
LINKED_SUBSCRIPTION = "Linked: Subscription ID in Subscriptions"
END_DATE = "Subscription End Date"
START_DATE = "Subscription Start Date"
ANCHOR_DAY = "Monthly Billing Anchor Date"
FREQUENCY = "Frequency"
LOCATION_PLATFORM_ID = "Square Location ID"
BILLING_SUBSCRIPTION_ID = "Square Subscription ID"
REDEEM_STATUS = "Redeem Status"
LAST_REDEEMED = "Last Redeemed Date"

# Every per-platform identifier column a location row may carry.
LOCATION_PLATFORM_FIELDS: tuple[str, ...] = ("Square Location ID", "Surreal Creamery Square Location ID")


class Frequency(str, Enum):
    MONTHLY = "Monthly"
    ANNUALLY = "Annually"

    @classmethod
    def parse(cls, raw: Any) -> Optional["Frequency"]:
        text = first_text(raw)
        for member in cls:
            if member.value == text:
                return member
        return None


class RedeemStatus(str, Enum):
    AVAILABLE = "Available"
    REDEEMED = "Redeemed"

    @classmethod
    def parse(cls, raw: Any) -> "RedeemStatus":
        # Anything the store does not mark as available is treated as spent.
        if first_text(raw) == cls.AVAILABLE.value:
            return cls.AVAILABLE
        return cls.REDEEMED


def _row_id(row: Mapping[str, Any], label: str) -> str:
    return first_text(row.get(label)) or first_text(row.get("id")) or ""


@dataclass(frozen=True)
class Subscriber:
    id: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subscriber":
        first_name = first_text(row.get("First Name"))
        last_name = first_text(row.get("Last Name"))
        display = first_text(row.get("Display Name"))
        if display is None and (first_name or last_name):
            display = " ".join(part for part in (first_name, last_name) if part)
        return cls(
            id=_row_id(row, SUBSCRIBER_ID),
            display_name=display,
            first_name=first_name,
            last_name=last_name,
            email=first_text(row.get("Email")),
            phone=first_text(row.get("Phone")),
        )


@dataclass(frozen=True)
class Subscription:
    id: str
    owner_ids: tuple[str, ...] = ()
    active_ids: tuple[str, ...] = ()
    code: Optional[str] = None
    status: Optional[str] = None
    end_date: Optional[date] = None
    anchor_day: Optional[int] = None
    start_date: Optional[date] = None
    frequency: Optional[Frequency] = None
    location_platform_id: Any = None
    plan_ids: tuple[str, ...] = ()
    entitlement_ids: tuple[str, ...] = ()
    billing_subscription_id: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def owner_id(self) -> Optional[str]:
        """The single owner is the first element of the owner-id list."""
        return self.owner_ids[0] if self.owner_ids else None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subscription":
        return cls(
            id=_row_id(row, SUBSCRIPTION_ID),
            owner_ids=tuple(id_list(row.get(OWNER_IDS))),
            active_ids=tuple(id_list(row.get(ACTIVE_IDS))),
            code=first_text(row.get("Code")),
            status=first_text(row.get("Status")),
            end_date=parse_date(row.get(END_DATE)),
            anchor_day=parse_day(row.get(ANCHOR_DAY)),
            start_date=parse_date(row.get(START_DATE)),
            frequency=Frequency.parse(row.get(FREQUENCY)),
            # Kept raw; compared only through normalize_key.
            location_platform_id=row.get(LOCATION_PLATFORM_ID),
            plan_ids=tuple(id_list(row.get(PLAN_IDS))),
            entitlement_ids=tuple(id_list(row.get(ENTITLEMENT_IDS))),
            billing_subscription_id=first_text(row.get(BILLING_SUBSCRIPTION_ID)),
            raw=dict(row),
        )


@dataclass(frozen=True)
class Benefit:
    id: str
    subscription_id: Optional[str] = None
    subscriber_id: Optional[str] = None
    name: Optional[str] = None
    status: RedeemStatus = RedeemStatus.AVAILABLE
    last_redeemed_at: Optional[datetime] = None
    frequency: Optional[Frequency] = None
    plan_ids: tuple[str, ...] = ()
    plan_name: Optional[str] = None
    subscription_code: Optional[str] = None
    subscription_end_date: Optional[date] = None

    @property
    def is_available(self) -> bool:
        return self.status is RedeemStatus.AVAILABLE

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Benefit":
        subscription_ids = id_list(row.get(LINKED_SUBSCRIPTION))
        subscriber_ids = id_list(row.get(OWNER_IDS))
        return cls(
            id=_row_id(row, ENTITLEMENT_ID),
            subscription_id=subscription_ids[0] if subscription_ids else None,
            subscriber_id=subscriber_ids[0] if subscriber_ids else None,
            name=first_text(row.get("Display Benefit Name")) or first_text(row.get("Benefit Name")),
            status=RedeemStatus.parse(row.get(REDEEM_STATUS)),
            last_redeemed_at=parse_datetime(row.get(LAST_REDEEMED)),
            frequency=Frequency.parse(row.get(FREQUENCY)),
            plan_ids=tuple(id_list(row.get(PLAN_IDS))),
            plan_name=first_text(row.get("Plan Name")),
            subscription_code=first_text(row.get("Code")),
            subscription_end_date=parse_date(row.get(END_DATE)),
        )


# The engine calls these entitlements; the store calls them benefits.
Entitlement = Benefit


@dataclass(frozen=True)
class Location:
    id: str
    name: Optional[str] = None
    platform_ids: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Location":
        return cls(
            id=_row_id(row, LOCATION_ID),
            name=first_text(row.get(LOCATION_NAME)),
            platform_ids={label: row.get(label) for label in LOCATION_PLATFORM_FIELDS if label in row},
        )
