from __future__ import annotations

import json

import httpx
import pytest

from membership.core.exceptions import RepositoryError
from membership.services.otp_client import APPROVED, OtpClient


@pytest.mark.asyncio
async def test_send_posts_action_and_channel(settings, mock_http) -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    mock_http(handler)
    await OtpClient(settings).send("ada@example.com", "email")

    assert bodies == [{"action": "send", "to": "ada@example.com", "channel": "email"}]


@pytest.mark.asyncio
async def test_check_returns_approved_verdict(settings, mock_http) -> None:
    mock_http(lambda request: httpx.Response(200, json={"success": "approved"}))
    verdict, message = await OtpClient(settings).check("+16502530000", "sms", "123456")
    assert verdict == APPROVED
    assert message is None


@pytest.mark.asyncio
async def test_check_pending_is_not_approved(settings, mock_http) -> None:
    mock_http(lambda request: httpx.Response(200, json={"success": "pending", "message": "Invalid code"}))
    verdict, message = await OtpClient(settings).check("+16502530000", "sms", "000000")
    assert verdict == "pending"
    assert message == "Invalid code"


@pytest.mark.asyncio
async def test_check_client_error_is_a_denial(settings, mock_http) -> None:
    mock_http(lambda request: httpx.Response(404, json={"message": "Code expired"}))
    verdict, message = await OtpClient(settings).check("ada@example.com", "email", "123456")
    assert verdict == "denied"
    assert message == "Code expired"


@pytest.mark.asyncio
async def test_check_server_error_propagates(settings, mock_http) -> None:
    mock_http(lambda request: httpx.Response(502))
    with pytest.raises(RepositoryError) as exc_info:
        await OtpClient(settings).check("ada@example.com", "email", "123456")
    assert exc_info.value.retryable is True
