"""
Error kinds raised by the identity services.

Each kind is an ``HTTPException`` with a fixed status code, so route handlers let
them propagate and FastAPI renders ``{"detail": ...}``. Services and tests match
on the class, never on the message.
"""

from __future__ import annotations

from fastapi import HTTPException, status


class ServiceError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, *, headers: dict[str, str] | None = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class AlreadyExists(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Email already registered"


class AlreadyApproved(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Account is already approved"


class InvalidInput(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class InvalidCredentials(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid email or password"

    def __init__(self) -> None:
        # Unknown email and wrong password must be indistinguishable.
        super().__init__(self.default_detail)


class InvalidToken(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid or expired token"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AccountInactive(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "User account is inactive"


class PendingApproval(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = (
        "Your account is pending admin approval. "
        "Please wait for an administrator to approve your account."
    )


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "User not found"


class InternalError(ServiceError):
    pass
