from __future__ import annotations

import json

import httpx
import pytest

from membership.domain.models import RedeemStatus
from membership.repositories.subscription_repo import SubscriptionRepository
from membership.services.record_store import RecordStoreClient


def _recording_store(mock_http, settings, responses: dict[str, object]):
    calls: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        operation = request.url.path.rsplit("/", 1)[-1]
        calls.append((operation, json.loads(request.content or b"{}")))
        return httpx.Response(200, json=responses.get(operation, []))

    mock_http(handler)
    return SubscriptionRepository(RecordStoreClient(settings)), calls


@pytest.mark.asyncio
async def test_find_subscriber_by_email_and_phone(mock_http, settings) -> None:
    repo, calls = _recording_store(
        mock_http,
        settings,
        {"find_subscriber": {"Subscriber ID": "cust-a", "Email": "ada@example.com"}},
    )

    by_email = await repo.find_subscriber_by_contact("ada@example.com", "email")
    await repo.find_subscriber_by_contact("+16502530000", "sms")

    assert [s.id for s in by_email] == ["cust-a"]
    assert calls == [
        ("find_subscriber", {"email": "ada@example.com"}),
        ("find_subscriber", {"phone": "+16502530000"}),
    ]


@pytest.mark.asyncio
async def test_find_subscriber_drops_rows_without_id(mock_http, settings) -> None:
    repo, _ = _recording_store(mock_http, settings, {"find_subscriber": [{"Email": "x@y.io"}]})
    assert await repo.find_subscriber_by_contact("x@y.io", "email") == []


@pytest.mark.asyncio
async def test_customer_reads_parse_rows(mock_http, settings) -> None:
    repo, calls = _recording_store(
        mock_http,
        settings,
        {
            "list_customer_subscriptions": [{"Subscription ID": "s1", "Monthly Billing Anchor Date": 5}],
            "list_entitlements": [{"Entitlement ID": "e1", "Redeem Status": "Available"}],
        },
    )

    subscriptions = await repo.list_subscriptions_by_customer("cust-a")
    benefits = await repo.list_benefits_by_customer("cust-a")

    assert subscriptions[0].anchor_day == 5
    assert benefits[0].status is RedeemStatus.AVAILABLE
    assert calls[0] == ("list_customer_subscriptions", {"CID": "cust-a"})
    assert calls[1] == ("list_entitlements", {"CID": "cust-a"})


@pytest.mark.asyncio
async def test_get_entitlement_matches_requested_id(mock_http, settings) -> None:
    repo, _ = _recording_store(
        mock_http,
        settings,
        {"get_entitlement": [{"Entitlement ID": "other"}, {"Entitlement ID": "e1", "Redeem Status": "Redeemed"}]},
    )

    benefit = await repo.get_entitlement("e1")

    assert benefit is not None
    assert benefit.status is RedeemStatus.REDEEMED
    assert await repo.get_entitlement("missing") is None


@pytest.mark.asyncio
async def test_mutations_send_expected_payloads(mock_http, settings) -> None:
    repo, calls = _recording_store(mock_http, settings, {})

    await repo.redeem_entitlement("e1")
    await repo.cancel_subscription("bill-9")
    await repo.update_subscription_payment("bill-9", "card-1")
    await repo.update_profile("cust-a", {"firstName": "Ada"})

    assert calls == [
        ("redeem_entitlement", {"id": "e1"}),
        ("cancel_subscription", {"subscriptionId": "bill-9"}),
        ("update_subscription_payment", {"subscriptionId": "bill-9", "cardId": "card-1"}),
        ("update_profile", {"CID": "cust-a", "firstName": "Ada"}),
    ]


@pytest.mark.asyncio
async def test_get_subscription_reads_by_id(mock_http, settings) -> None:
    repo, calls = _recording_store(
        mock_http,
        settings,
        {"get_subscription": {"Subscription ID": "s1", "Subscription End Date": "2024-12-31"}},
    )

    subscription = await repo.get_subscription("s1")

    assert subscription is not None
    assert subscription.end_date.isoformat() == "2024-12-31"
    assert calls == [("get_subscription", {"id": "s1"})]
    assert await repo.get_subscription("s2") is None
