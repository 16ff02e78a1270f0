"""Next relevant date (renewal or expiry) for a subscription."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from membership.domain.models import Frequency, Subscription

logger = logging.getLogger(__name__)

EXPIRES_ON = "Expires on:"
NEXT_RENEWAL = "Next Renewal:"


@dataclass(frozen=True)
class TermInfo:
    date: Optional[date]
    label: str


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _day_in_month(year: int, month: int, day: int) -> date:
    """Calendar date for ``day`` in the given month.

    Days past the end of the month spill into the following month
    (anchor 31 in a 30-day month lands on the 1st).
    """
    last_day = calendar.monthrange(year, month)[1]
    if day <= last_day:
        return date(year, month, day)
    logger.warning("Billing anchor day exceeds month length year=%s month=%s day=%s", year, month, day)
    return date(year, month, 1) + timedelta(days=day - 1)


def _add_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def next_monthly_renewal(anchor_day: int, today: date) -> date:
    renewal = _day_in_month(today.year, today.month, anchor_day)
    if renewal < today:
        year, month = _add_month(today.year, today.month)
        renewal = _day_in_month(year, month, anchor_day)
    return renewal


def next_annual_renewal(start_date: date, today: date) -> date:
    renewal = _day_in_month(today.year, start_date.month, start_date.day)
    if renewal < today:
        renewal = _day_in_month(today.year + 1, start_date.month, start_date.day)
    return renewal


def term_info(subscription: Subscription, today: Union[date, datetime]) -> TermInfo:
    """Resolve the date a subscription next renews or expires, with its display label."""
    today = _as_date(today)
    anchor_day = subscription.anchor_day
    end_date = subscription.end_date

    if anchor_day:
        # A cancellation end-dates a recurring plan; the end date wins.
        if end_date is not None:
            return TermInfo(end_date, EXPIRES_ON)
        if subscription.frequency is Frequency.MONTHLY:
            return TermInfo(next_monthly_renewal(anchor_day, today), NEXT_RENEWAL)
        if subscription.frequency is Frequency.ANNUALLY and subscription.start_date is not None:
            return TermInfo(next_annual_renewal(subscription.start_date, today), NEXT_RENEWAL)

    if end_date is not None:
        return TermInfo(end_date, EXPIRES_ON)
    return TermInfo(None, EXPIRES_ON)


def is_current(subscription: Subscription, today: Union[date, datetime]) -> bool:
    """Recurring subscriptions are always current; fixed terms until their end date."""
    if subscription.anchor_day:
        return True
    if subscription.end_date is None:
        return False
    return subscription.end_date >= _as_date(today)
