from typing import Dict, Optional

from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception for API errors.
    Carries a machine-readable `code` next to the human-readable detail."""

    code: str = "SERVER_ERROR"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred. Please try again.",
        code: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        if code:
            self.code = code


# ============== Authentication & Sessions ==============


class InvalidCredentialsException(BaseAPIException):
    """Triggered when login fails. Never reveals which half was wrong."""

    code = "INVALID_CREDENTIALS"

    def __init__(self, detail: str = "Invalid email or password."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class AccountLockedException(BaseAPIException):
    """Too many consecutive failed logins."""

    code = "ACCOUNT_LOCKED"

    def __init__(
        self,
        detail: str = "Account is temporarily locked after repeated failed logins.",
        retry_after: Optional[int] = None,
    ):
        headers = {"Retry-After": str(retry_after)} if retry_after else None
        super().__init__(
            status_code=status.HTTP_423_LOCKED,
            detail=detail,
            headers=headers,
        )


class InvalidTokenException(BaseAPIException):
    code = "INVALID_TOKEN"

    def __init__(self, detail: str = "Could not validate credentials."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ExpiredTokenException(BaseAPIException):
    code = "TOKEN_EXPIRED"

    def __init__(self, detail: str = "Token has expired. Please sign in again."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


# ============== Staff & Permissions ==============


class PermissionDeniedException(BaseAPIException):
    """Enforces role-based access for CEO, managers and staff."""

    code = "FORBIDDEN"

    def __init__(
        self, detail: str = "You do not have the required permissions for this action."
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


# ============== Records ==============


class ResourceNotFoundException(BaseAPIException):
    """Entity absent or hidden by soft delete."""

    code = "NOT_FOUND"

    def __init__(self, detail: str = "The requested information could not be found."):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class UserNotFoundException(ResourceNotFoundException):
    def __init__(self, detail: str = "User not found."):
        super().__init__(detail=detail)


class ChannelNotFoundException(ResourceNotFoundException):
    def __init__(self, detail: str = "Channel not found."):
        super().__init__(detail=detail)


class MessageNotFoundException(ResourceNotFoundException):
    def __init__(self, detail: str = "Message not found."):
        super().__init__(detail=detail)


class TaskNotFoundException(ResourceNotFoundException):
    def __init__(self, detail: str = "Task not found."):
        super().__init__(detail=detail)


class FileNotFoundException(ResourceNotFoundException):
    def __init__(self, detail: str = "File not found."):
        super().__init__(detail=detail)


class ConflictException(BaseAPIException):
    """Duplicate or concurrently modified record."""

    code = "CONFLICT"

    def __init__(self, detail: str = "The record conflicts with an existing one."):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class ValidationException(BaseAPIException):
    """Malformed input that passed schema validation but fails a business rule."""

    code = "VALIDATION_ERROR"

    def __init__(self, detail: str = "The request could not be validated."):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )
