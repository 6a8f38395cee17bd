"""Provider client exceptions."""


class ProviderError(Exception):
    """Raised when a provider call fails (network, auth, validation, 5xx).

    Provider clients never retry; the caller decides what a failure means.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        http_status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.message = message
        self.http_status = http_status

    def __str__(self) -> str:
        status = f" (HTTP {self.http_status})" if self.http_status is not None else ""
        return f"{self.provider}: {self.message}{status}"


class ProviderNotConfiguredError(ProviderError):
    """Raised when an app-level credential the provider needs is missing."""

    pass
