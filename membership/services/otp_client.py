"""One-time passcode collaborator (send / check)."""

from __future__ import annotations

import logging
from typing import Any, Optional

from membership.core.exceptions import RepositoryError
from membership.settings.config import Settings

from .record_store import post_json

logger = logging.getLogger(__name__)

APPROVED = "approved"


class OtpClient:
    def __init__(self, settings: Settings) -> None:
        if not settings.otp_service_url:
            raise RepositoryError(
                "OTP service is not configured",
                code="otp_not_configured",
                hint="Set OTP_SERVICE_URL",
                retryable=False,
            )
        self._url = str(settings.otp_service_url)
        self._timeout = settings.http_timeout_seconds

    async def send(self, contact: str, channel: str) -> None:
        await post_json(
            self._url,
            {"action": "send", "to": contact, "channel": channel},
            timeout=self._timeout,
            operation="otp_send",
        )
        logger.info("OTP sent channel=%s", channel)

    async def check(self, contact: str, channel: str, code: str) -> tuple[str, Optional[str]]:
        """Return the collaborator verdict and its optional message.

        A rejected code may come back as a non-2xx status; that is a verdict,
        not a transport failure.
        """
        try:
            response = await post_json(
                self._url,
                {"action": "check", "to": contact, "code": code, "channel": channel},
                timeout=self._timeout,
                operation="otp_check",
            )
        except RepositoryError as exc:
            if exc.upstream_status is not None and 400 <= exc.upstream_status < 500:
                return "denied", exc.hint
            raise

        try:
            data: Any = response.json()
        except ValueError:
            return "denied", None
        if not isinstance(data, dict):
            return "denied", None
        verdict = str(data.get("success") or data.get("status") or "denied").strip().lower()
        message = data.get("message") if isinstance(data.get("message"), str) else None
        return verdict, message
