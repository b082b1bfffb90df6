from __future__ import annotations


class ShatterApiError(Exception):
    pass


class InvalidInputError(ShatterApiError):
    """Request input outside the accepted domain. The message is safe to show callers."""


class UpstreamError(ShatterApiError):
    """A call to an external provider (LLM or payments) failed."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class LLMClientConfigError(ShatterApiError):
    pass


class PaymentConfigError(ShatterApiError):
    pass
