"""Saved payment cards held by the payment processor."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Optional

from membership.core.exceptions import RepositoryError
from membership.settings.config import Settings

from .record_store import post_json


@dataclass(frozen=True)
class Card:
    id: str
    brand: Optional[str] = None
    last_4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Card":
        return cls(
            id=str(data.get("id") or ""),
            brand=data.get("card_brand"),
            last_4=data.get("last_4"),
            exp_month=data.get("exp_month") if isinstance(data.get("exp_month"), int) else None,
            exp_year=data.get("exp_year") if isinstance(data.get("exp_year"), int) else None,
        )

    @property
    def display_brand(self) -> str:
        if not self.brand:
            return "Card"
        return " ".join(word.capitalize() for word in self.brand.lower().replace("_", " ").split())


class CardStoreClient:
    def __init__(self, settings: Settings) -> None:
        if not settings.card_store_url:
            raise RepositoryError(
                "Card store is not configured",
                code="card_store_not_configured",
                hint="Set CARD_STORE_URL",
                retryable=False,
            )
        self._base_url = str(settings.card_store_url).rstrip("/")
        self._timeout = settings.http_timeout_seconds

    async def retrieve_customer_cards(self, customer_id: str) -> list[Card]:
        response = await post_json(
            f"{self._base_url}/retrieve_customer",
            {"CID": customer_id},
            timeout=self._timeout,
            operation="retrieve_customer_cards",
        )
        try:
            data = response.json()
        except ValueError:
            return []
        # The processor answers with a one-element list wrapping the customer.
        customer = data[0] if isinstance(data, list) and data else data
        if not isinstance(customer, dict):
            return []
        cards = customer.get("cards")
        if not isinstance(cards, list):
            return []
        return [Card.from_payload(item) for item in cards if isinstance(item, dict)]

    async def save_card(self, nonce: str, customer_id: str) -> Card:
        idempotency_key = str(uuid.uuid4())
        response = await post_json(
            f"{self._base_url}/save_card",
            {"nonce": nonce, "customerId": customer_id, "idempotency_key": idempotency_key},
            timeout=self._timeout,
            operation="save_card",
            headers={"Idempotency-Key": idempotency_key},
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise RepositoryError("The card can't be added at this time", code="save_card_invalid") from exc
        card = data.get("card") if isinstance(data, dict) else None
        if not isinstance(card, dict):
            raise RepositoryError("The card can't be added at this time", code="save_card_invalid")
        return Card.from_payload(card)
