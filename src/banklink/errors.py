"""Typed errors raised by provider adapters and the provider facade.

Every error carries a machine readable ``code`` so callers can tell input
mistakes, unsupported operations and vendor rejections apart without parsing
messages.
"""

from typing import Any

INVALID_PROVIDER = "INVALID_PROVIDER"
MISSING_PARAMETER = "MISSING_PARAMETER"
OPERATION_NOT_SUPPORTED = "OPERATION_NOT_SUPPORTED"
RETRIES_EXHAUSTED = "RETRIES_EXHAUSTED"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class BankLinkError(Exception):
    """Base class for all BankLink errors."""

    code: str = UNKNOWN_ERROR

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for logging or API responses."""
        return {"code": self.code, "message": self.message}


class InvalidProviderError(BankLinkError):
    """Raised when the facade is asked to use a provider it does not know."""

    code = INVALID_PROVIDER

    def __init__(self, provider: object):
        super().__init__(f"Invalid provider: {provider!r}")
        self.provider = provider


class MissingParameterError(BankLinkError):
    """Raised when a provider-required request parameter is absent."""

    code = MISSING_PARAMETER

    def __init__(self, provider: str, parameter: str):
        super().__init__(f"{provider} requires the '{parameter}' parameter")
        self.provider = provider
        self.parameter = parameter


class ProviderError(BankLinkError):
    """A failure reported by, or while talking to, a vendor API.

    Attributes:
        message: Human readable vendor message
        code: Vendor specific error code (e.g. ``ITEM_LOGIN_REQUIRED``)
        status_code: HTTP status of the failed call, when known
        provider: Identifier of the vendor that failed
        transient: Whether retrying the same call may succeed
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        *,
        status_code: int | None = None,
        provider: str | None = None,
        transient: bool | None = None,
    ):
        super().__init__(message, code or UNKNOWN_ERROR)
        self.status_code = status_code
        self.provider = provider
        self._transient = transient

    @property
    def is_transient(self) -> bool:
        """Whether the failure is worth retrying."""
        if self._transient is not None:
            return self._transient
        return self.status_code in TRANSIENT_STATUS_CODES

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error including vendor context."""
        return {
            **super().to_dict(),
            "status_code": self.status_code,
            "provider": self.provider,
        }

    def __str__(self) -> str:
        prefix = f"[{self.provider}] " if self.provider else ""
        return f"{prefix}{self.code}: {self.message}"


class OperationNotSupportedError(ProviderError):
    """Raised by write paths a vendor does not support (e.g. Stripe deletes)."""

    def __init__(self, provider: str, operation: str):
        super().__init__(
            f"{operation} is not supported by {provider}",
            OPERATION_NOT_SUPPORTED,
            provider=provider,
            transient=False,
        )
        self.operation = operation
