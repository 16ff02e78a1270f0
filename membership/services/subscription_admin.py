"""Admin creation and editing of subscriptions."""

from __future__ import annotations

import logging
import secrets
from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from membership.core.exceptions import ValidationError
from membership.repositories.subscription_repo import SubscriptionRepository

logger = logging.getLogger(__name__)


def new_subscription_code() -> str:
    """Random 6-digit redemption code (100000-999999)."""
    return str(100000 + secrets.randbelow(900000))


class SubscriptionStatus(str, Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"
    TRAINING = "Training"
    UNPAID = "Unpaid"


class SubscriptionDraft(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location_id: str = Field(..., min_length=1, serialization_alias="locationId")
    plan_id: str = Field(..., min_length=1, serialization_alias="planId")
    subscriber_id: str = Field(..., min_length=1, serialization_alias="subscriberId")
    active_subscriber_ids: list[str] = Field(default_factory=list, serialization_alias="activeSubscriberIds")
    entitlement_ids: list[str] = Field(..., min_length=1, serialization_alias="entitlementIds")
    status: SubscriptionStatus
    subscription_end: date = Field(..., serialization_alias="subscriptionEnd")
    notes: Optional[str] = None
    code: str = Field(default_factory=new_subscription_code, pattern=r"^\d{6}$")

    @field_validator("active_subscriber_ids", "entitlement_ids", mode="before")
    @classmethod
    def _dedupe_ids(cls, value: object) -> object:
        if isinstance(value, list):
            return list(dict.fromkeys(str(item).strip() for item in value if str(item).strip()))
        return value

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def parse_draft(data: dict[str, Any]) -> SubscriptionDraft:
    try:
        return SubscriptionDraft.model_validate(data)
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ValidationError(
            "Please fill all required fields",
            code="subscription_draft_invalid",
            hint=", ".join(fields) or None,
        ) from exc


class SubscriptionAdminService:
    def __init__(self, repository: SubscriptionRepository) -> None:
        self._repo = repository

    async def create(self, data: dict[str, Any]) -> SubscriptionDraft:
        draft = parse_draft(data)
        await self._repo.create_subscription(draft.to_payload())
        logger.info("Subscription created code=%s location_id=%s", draft.code, draft.location_id)
        return draft

    async def update(self, subscription_id: str, data: dict[str, Any]) -> SubscriptionDraft:
        if not subscription_id:
            raise ValidationError("Subscription id is required.", code="subscription_id_missing")
        draft = parse_draft(data)
        await self._repo.update_subscription({"id": subscription_id, **draft.to_payload()})
        logger.info("Subscription updated subscription_id=%s", subscription_id)
        return draft
