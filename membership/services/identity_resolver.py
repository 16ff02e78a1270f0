"""Contact-based sign-in: channel detection, passcode round-trip, account disambiguation."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional, Sequence

import phonenumbers

from membership.core.exceptions import AuthError, NotFoundError, PartialFailure, ValidationError
from membership.domain.models import Subscriber
from membership.repositories.subscription_repo import SubscriptionRepository

from .billing_term import is_current
from .otp_client import APPROVED, OtpClient

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
_CODE_PATTERN = re.compile(r"^\d{6}$")


class Channel(str, Enum):
    EMAIL = "email"
    SMS = "sms"


def detect_channel(contact: str, default_region: str = "US") -> tuple[Channel, str]:
    """Classify a contact and return it in the form the passcode service expects.

    Phone numbers come back in E.164; emails are returned trimmed.
    """
    text = str(contact or "").strip()
    if not text:
        raise ValidationError("Please enter a valid email or phone number.", code="contact_invalid")
    if _EMAIL_PATTERN.match(text):
        return Channel.EMAIL, text

    try:
        number = phonenumbers.parse(text, default_region)
    except phonenumbers.NumberParseException:
        number = None
    if number is not None and phonenumbers.is_valid_number(number):
        return Channel.SMS, phonenumbers.format_number(number, phonenumbers.PhoneNumberFormat.E164)

    raise ValidationError("Please enter a valid email or phone number.", code="contact_invalid")


@dataclass(frozen=True)
class RankedAccount:
    account: Subscriber
    active_count: int


@dataclass(frozen=True)
class AccountResolution:
    contact: str
    channel: Channel
    candidates: list[RankedAccount] = field(default_factory=list)
    selected: Optional[Subscriber] = None

    @property
    def requires_selection(self) -> bool:
        return self.selected is None


class IdentityResolver:
    def __init__(self, otp: OtpClient, repository: SubscriptionRepository, *, default_region: str = "US") -> None:
        self._otp = otp
        self._repo = repository
        self._default_region = default_region

    def detect_channel(self, contact: str) -> tuple[Channel, str]:
        return detect_channel(contact, self._default_region)

    async def request_code(self, contact: str, channel: Channel) -> None:
        await self._otp.send(contact, channel.value)

    async def verify_code(self, contact: str, channel: Channel, code: str) -> str:
        code = str(code or "").strip()
        if not _CODE_PATTERN.match(code):
            raise ValidationError("Please enter the 6-digit code.", code="otp_code_invalid")
        verdict, message = await self._otp.check(contact, channel.value, code)
        if verdict != APPROVED:
            logger.info("OTP rejected channel=%s verdict=%s", channel.value, verdict)
            raise AuthError(message or "Invalid verification code.", code="otp_rejected")
        return verdict

    async def resolve_accounts(self, contact: str, channel: Channel) -> list[Subscriber]:
        accounts = await self._repo.find_subscriber_by_contact(contact, channel.value)
        if not accounts:
            raise NotFoundError("No account associated with this contact was found.", code="account_not_found")
        return accounts

    async def _active_count(self, account: Subscriber, today: date) -> int:
        subscriptions = await self._repo.list_subscriptions_by_customer(account.id)
        return sum(1 for subscription in subscriptions if is_current(subscription, today))

    async def rank_accounts_by_subscription_activity(
        self,
        accounts: Sequence[Subscriber],
        today: date,
    ) -> list[RankedAccount]:
        """Count current subscriptions per candidate; one failed lookup only zeroes its own count."""
        results = await asyncio.gather(
            *(self._active_count(account, today) for account in accounts),
            return_exceptions=True,
        )

        ranked: list[RankedAccount] = []
        for account, result in zip(accounts, results):
            if isinstance(result, Exception):
                failure = PartialFailure(
                    "Subscription lookup failed for candidate account",
                    item_id=account.id,
                    cause=result,
                )
                logger.warning(
                    "%s account_id=%s error=%s",
                    failure,
                    failure.item_id,
                    type(result).__name__,
                )
                ranked.append(RankedAccount(account=account, active_count=0))
            elif isinstance(result, BaseException):
                raise result
            else:
                ranked.append(RankedAccount(account=account, active_count=result))
        return ranked

    async def authenticate(self, contact: str, channel: Channel, code: str, today: date) -> AccountResolution:
        await self.verify_code(contact, channel, code)
        accounts = await self.resolve_accounts(contact, channel)
        if len(accounts) == 1:
            # Nothing to disambiguate, so no ranking lookups are made.
            return AccountResolution(contact=contact, channel=channel, selected=accounts[0])

        ranked = await self.rank_accounts_by_subscription_activity(accounts, today)
        logger.info("Contact maps to multiple accounts count=%d", len(ranked))
        return AccountResolution(contact=contact, channel=channel, candidates=ranked)

    def select_account(self, resolution: AccountResolution, subscriber_id: Optional[str]) -> AccountResolution:
        selected = resolution.selected
        if selected is not None and (not subscriber_id or subscriber_id == selected.id):
            return resolution
        if not subscriber_id:
            raise ValidationError("Please select an account to continue.", code="account_selection_required")
        for candidate in resolution.candidates:
            if candidate.account.id == subscriber_id:
                return AccountResolution(
                    contact=resolution.contact,
                    channel=resolution.channel,
                    candidates=resolution.candidates,
                    selected=candidate.account,
                )
        raise ValidationError("Selected account is not one of the matches.", code="account_selection_invalid")
