from typing import Any, Optional


class AppException(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationException(AppException):
    """Exception raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details=details,
        )


class QuotaExceededException(AppException):
    """Exception raised when a shop has used up its plan for the billing cycle."""

    def __init__(self, used: int, limit: Optional[int], plan: str):
        super().__init__(
            code="LIMIT_REACHED",
            message="Recommendation limit reached for the current billing cycle",
            status_code=429,
            details={"used": used, "limit": limit, "plan": plan},
        )


class UpstreamException(AppException):
    """Exception raised when the backing store or platform API fails."""

    def __init__(
        self, message: str = "Upstream service error", details: Optional[Any] = None
    ):
        super().__init__(
            code="UPSTREAM_ERROR",
            message=message,
            status_code=500,
            details=details,
        )
