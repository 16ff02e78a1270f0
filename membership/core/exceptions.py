"""Error taxonomy for the membership engine and FastAPI handlers for host apps."""

from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    PARTIAL_FAILURE = "partial_failure"
    REPOSITORY = "repository"
    STATE_CONFLICT = "state_conflict"


# One status per kind; keep exhaustive (checked in tests).
ERROR_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTH: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PARTIAL_FAILURE: 200,
    ErrorKind.REPOSITORY: 502,
    ErrorKind.STATE_CONFLICT: 409,
}


class MembershipError(RuntimeError):
    kind: ErrorKind = ErrorKind.REPOSITORY
    default_code: str = "membership_error"

    def __init__(self, message: str, *, code: Optional[str] = None, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.hint = hint

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]


class ValidationError(MembershipError):
    """Malformed caller input (contact, code, profile, draft)."""

    kind = ErrorKind.VALIDATION
    default_code = "validation_error"


class AuthError(MembershipError):
    """Passcode rejected or expired."""

    kind = ErrorKind.AUTH
    default_code = "auth_failed"


class NotFoundError(MembershipError):
    kind = ErrorKind.NOT_FOUND
    default_code = "not_found"


class PartialFailure(MembershipError):
    """One item of a fan-out failed. Logged and absorbed, never raised to callers."""

    kind = ErrorKind.PARTIAL_FAILURE
    default_code = "partial_failure"

    def __init__(self, message: str, *, item_id: Optional[str] = None, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.item_id = item_id
        self.cause = cause


class RepositoryError(MembershipError):
    """Network or backend failure on a required read/write."""

    kind = ErrorKind.REPOSITORY
    default_code = "repository_error"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        retryable: bool = True,
        upstream_status: Optional[int] = None,
    ) -> None:
        super().__init__(message, code=code, hint=hint)
        self.retryable = retryable
        self.upstream_status = upstream_status


class ConflictReason(str, Enum):
    EXPIRED = "subscription_expired"
    ALREADY_REDEEMED = "already_redeemed"


_CONFLICT_MESSAGES: Dict[ConflictReason, str] = {
    ConflictReason.EXPIRED: "The subscription has expired",
    ConflictReason.ALREADY_REDEEMED: "This benefit was already redeemed this period",
}


class StateConflict(MembershipError):
    kind = ErrorKind.STATE_CONFLICT
    default_code = "state_conflict"

    def __init__(self, reason: ConflictReason, *, entitlement_id: Optional[str] = None) -> None:
        super().__init__(_CONFLICT_MESSAGES[reason], code=reason.value)
        self.reason = reason
        self.entitlement_id = entitlement_id


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    request_id: Optional[str] = None,
    hint: Optional[str] = None,
) -> JSONResponse:
    """Build the uniform JSON error envelope."""
    if request_id is None:
        request_id = uuid.uuid4().hex

    payload: Dict[str, Any] = {
        "status": status_code,
        "code": code,
        "msg": f"{message} ({hint})" if hint else message,
        "message": message,
        "request_id": request_id,
    }
    if hint is not None:
        payload["hint"] = hint
    return JSONResponse(status_code=status_code, content=payload)


def register_exception_handlers(app: FastAPI) -> None:
    """Render membership errors for a FastAPI presentation layer."""

    @app.exception_handler(MembershipError)
    async def membership_exception_handler(request: Request, exc: MembershipError) -> JSONResponse:
        request_id = getattr(request.state, "request_id", None) or uuid.uuid4().hex
        if isinstance(exc, RepositoryError):
            logger.warning(
                "Membership repository failure code=%s retryable=%s request_id=%s path=%s",
                exc.code,
                exc.retryable,
                request_id,
                request.url.path,
            )
            # Backend details stay in the log; callers get a generic retryable failure.
            response = create_error_response(
                status_code=exc.status_code,
                code=exc.code,
                message="Something went wrong, please try again",
                request_id=request_id,
            )
            if exc.retryable:
                response.headers["Retry-After"] = "5"
            return response

        return create_error_response(
            status_code=exc.status_code,
            code=exc.code,
            message=str(exc),
            request_id=request_id,
            hint=exc.hint,
        )
