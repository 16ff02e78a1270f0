"""Entitlement redemption: guard, transition and store round-trip."""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime

from membership.core.exceptions import ConflictReason, NotFoundError, StateConflict
from membership.domain.models import Benefit, RedeemStatus, Subscription
from membership.repositories.subscription_repo import SubscriptionRepository

from .billing_term import is_current

logger = logging.getLogger(__name__)


def redemption_blocker(entitlement: Benefit, subscription: Subscription, now: datetime) -> ConflictReason | None:
    if not is_current(subscription, now):
        return ConflictReason.EXPIRED
    if entitlement.status is RedeemStatus.REDEEMED:
        return ConflictReason.ALREADY_REDEEMED
    return None


def can_redeem(entitlement: Benefit, subscription: Subscription, now: datetime) -> bool:
    return redemption_blocker(entitlement, subscription, now) is None


def redeem(entitlement: Benefit, subscription: Subscription, now: datetime) -> Benefit:
    """Available -> Redeemed. Returns the new value; the input is left untouched."""
    reason = redemption_blocker(entitlement, subscription, now)
    if reason is not None:
        raise StateConflict(reason, entitlement_id=entitlement.id)
    return dataclasses.replace(entitlement, status=RedeemStatus.REDEEMED, last_redeemed_at=now)


class EntitlementService:
    def __init__(self, repository: SubscriptionRepository) -> None:
        self._repo = repository

    async def redeem(self, entitlement_id: str, now: datetime) -> Benefit:
        """Redeem against the store's current records and return its view afterwards.

        Entitlement and subscription are always loaded fresh; caller-held copies
        may be stale. The store owns atomicity; the locally computed transition
        only gates the request and is never returned.
        """
        if not entitlement_id:
            raise NotFoundError("Entitlement not found", code="entitlement_not_found")
        entitlement = await self._repo.get_entitlement(entitlement_id)
        if entitlement is None:
            raise NotFoundError("Entitlement not found", code="entitlement_not_found")
        if not entitlement.subscription_id:
            raise NotFoundError("Entitlement has no subscription", code="subscription_not_found")
        subscription = await self._repo.get_subscription(entitlement.subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription not found", code="subscription_not_found")

        redeem(entitlement, subscription, now)

        await self._repo.redeem_entitlement(entitlement.id)
        logger.info("Entitlement redeemed entitlement_id=%s subscription_id=%s", entitlement.id, subscription.id)

        refreshed = await self._repo.get_entitlement(entitlement.id)
        if refreshed is None:
            raise NotFoundError("Entitlement not found after redemption", code="entitlement_not_found")
        return refreshed
