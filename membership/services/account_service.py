"""Customer self-service: dashboard load, profile completion, cancellation, payment method."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from membership.core.exceptions import RepositoryError, ValidationError
from membership.domain.models import Benefit, Subscription
from membership.domain.normalize import first_text
from membership.repositories.subscription_repo import SubscriptionRepository

from .card_store import Card, CardStoreClient
from .identity_resolver import Channel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Profile:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""

    @property
    def missing_fields(self) -> list[str]:
        return [name for name in ("first_name", "last_name", "email", "phone") if not getattr(self, name).strip()]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    def to_payload(self) -> dict[str, str]:
        return {
            "firstName": self.first_name.strip(),
            "lastName": self.last_name.strip(),
            "email": self.email.strip(),
            "phone": self.phone.strip(),
        }


_PROFILE_COLUMNS = {
    "first_name": "First Name",
    "last_name": "Last Name",
    "email": "Email",
    "phone": "Phone",
}


def best_known_profile(
    subscriptions: Iterable[Subscription],
    *,
    verified_contact: Optional[str] = None,
    channel: Optional[Channel] = None,
) -> Profile:
    """First non-blank value per field across the customer's rows.

    The contact just verified by passcode overrides the stored value for its channel.
    """
    rows = [subscription.raw for subscription in subscriptions]
    values: dict[str, str] = {}
    for attr, column in _PROFILE_COLUMNS.items():
        values[attr] = next((text for text in (first_text(row.get(column)) for row in rows) if text), "")

    profile = Profile(**values)
    if verified_contact and channel is Channel.EMAIL:
        profile = replace(profile, email=verified_contact)
    elif verified_contact and channel is Channel.SMS:
        profile = replace(profile, phone=verified_contact)
    return profile


@dataclass(frozen=True)
class Dashboard:
    customer_id: str
    profile: Profile
    subscriptions: list[Subscription] = field(default_factory=list)
    benefits: list[Benefit] = field(default_factory=list)

    @property
    def requires_profile_completion(self) -> bool:
        return not self.profile.is_complete


class AccountService:
    def __init__(self, repository: SubscriptionRepository, cards: Optional[CardStoreClient] = None) -> None:
        self._repo = repository
        self._cards = cards

    async def load_dashboard(
        self,
        customer_id: str,
        *,
        verified_contact: Optional[str] = None,
        channel: Optional[Channel] = None,
    ) -> Dashboard:
        # Both reads are required; either failure aborts the load.
        subscriptions, benefits = await asyncio.gather(
            self._repo.list_subscriptions_by_customer(customer_id),
            self._repo.list_benefits_by_customer(customer_id),
        )
        profile = best_known_profile(subscriptions, verified_contact=verified_contact, channel=channel)
        return Dashboard(customer_id=customer_id, profile=profile, subscriptions=subscriptions, benefits=benefits)

    async def update_profile(self, customer_id: str, profile: Profile) -> Profile:
        if not profile.first_name.strip() or not profile.last_name.strip() or not profile.email.strip():
            raise ValidationError("All fields are required.", code="profile_incomplete")
        await self._repo.update_profile(customer_id, profile.to_payload())
        logger.info("Profile updated customer_id=%s", customer_id)
        return profile

    @staticmethod
    def _billing_id(subscription: Subscription) -> str:
        if not subscription.billing_subscription_id:
            raise ValidationError(
                "Subscription billing id is missing.",
                code="billing_subscription_id_missing",
            )
        return subscription.billing_subscription_id

    async def cancel_subscription(self, subscription: Subscription) -> None:
        billing_id = self._billing_id(subscription)
        await self._repo.cancel_subscription(billing_id)
        logger.info("Subscription cancellation requested subscription_id=%s", subscription.id)

    async def update_payment_method(self, subscription: Subscription, card_id: str) -> None:
        if not card_id:
            raise ValidationError("Please select a card.", code="card_required")
        billing_id = self._billing_id(subscription)
        await self._repo.update_subscription_payment(billing_id, card_id)
        logger.info("Subscription payment method updated subscription_id=%s", subscription.id)

    def _card_store(self) -> CardStoreClient:
        if self._cards is None:
            raise RepositoryError("Card store is not configured", code="card_store_not_configured", retryable=False)
        return self._cards

    async def list_cards(self, customer_id: str) -> list[Card]:
        return await self._card_store().retrieve_customer_cards(customer_id)

    async def save_card(self, nonce: str, customer_id: str) -> Card:
        if not nonce:
            raise ValidationError("Card details are missing.", code="card_nonce_missing")
        return await self._card_store().save_card(nonce, customer_id)
