"""Subscription data repository backed by the record store."""

from __future__ import annotations

from typing import Any, Optional

from membership.domain.models import Benefit, Location, Subscriber, Subscription
from membership.services.record_store import RecordStoreClient


class SubscriptionRepository:
    def __init__(self, store: RecordStoreClient) -> None:
        self._store = store

    # Customer-scoped reads

    async def list_subscriptions_by_customer(self, customer_id: str) -> list[Subscription]:
        rows = await self._store.fetch_rows("list_customer_subscriptions", {"CID": customer_id})
        return [Subscription.from_row(row) for row in rows]

    async def list_benefits_by_customer(self, customer_id: str) -> list[Benefit]:
        rows = await self._store.fetch_rows("list_entitlements", {"CID": customer_id})
        return [Benefit.from_row(row) for row in rows]

    async def find_subscriber_by_contact(self, contact: str, channel: str) -> list[Subscriber]:
        key = "email" if channel == "email" else "phone"
        rows = await self._store.fetch_rows("find_subscriber", {key: contact})
        return [subscriber for subscriber in map(Subscriber.from_row, rows) if subscriber.id]

    # Admin-wide reads

    async def list_locations(self) -> list[Location]:
        rows = await self._store.fetch_rows("list_locations")
        return [Location.from_row(row) for row in rows]

    async def list_subscriptions(self) -> list[Subscription]:
        rows = await self._store.fetch_rows("list_subscriptions")
        return [Subscription.from_row(row) for row in rows]

    async def list_subscribers(self) -> list[Subscriber]:
        rows = await self._store.fetch_rows("list_subscribers")
        return [Subscriber.from_row(row) for row in rows]

    async def list_entitlements(self) -> list[Benefit]:
        rows = await self._store.fetch_rows("list_all_entitlements")
        return [Benefit.from_row(row) for row in rows]

    async def get_entitlement(self, entitlement_id: str) -> Optional[Benefit]:
        rows = await self._store.fetch_rows("get_entitlement", {"id": entitlement_id})
        for row in rows:
            benefit = Benefit.from_row(row)
            if benefit.id == entitlement_id:
                return benefit
        return None

    async def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        rows = await self._store.fetch_rows("get_subscription", {"id": subscription_id})
        for row in rows:
            subscription = Subscription.from_row(row)
            if subscription.id == subscription_id:
                return subscription
        return None

    # Mutations

    async def update_profile(self, customer_id: str, fields: dict[str, Any]) -> Any:
        return await self._store.call("update_profile", {"CID": customer_id, **fields})

    async def create_subscription(self, payload: dict[str, Any]) -> Any:
        return await self._store.call("create_subscription", payload)

    async def update_subscription(self, payload: dict[str, Any]) -> Any:
        return await self._store.call("update_subscription", payload)

    async def redeem_entitlement(self, entitlement_id: str) -> Any:
        return await self._store.call("redeem_entitlement", {"id": entitlement_id})

    async def cancel_subscription(self, subscription_id: str) -> Any:
        return await self._store.call("cancel_subscription", {"subscriptionId": subscription_id})

    async def update_subscription_payment(self, subscription_id: str, payment_method_id: str) -> Any:
        return await self._store.call(
            "update_subscription_payment",
            {"subscriptionId": subscription_id, "cardId": payment_method_id},
        )
