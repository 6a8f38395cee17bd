"""Provider adapter contract and shared HTTP plumbing.

Every work tracker implements ProviderAdapter. The dispatcher only ever
talks to this interface; it never branches on a concrete provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx

from feedback_sync.config import HttpConfig, get_settings
from feedback_sync.logging import get_logger
from feedback_sync.schemas import (
    FeedbackStatus,
    IntegrationSettings,
    Provider,
    WorkItemDraft,
    WorkItemRef,
)

from .exceptions import ProviderError

logger = get_logger(__name__)


class ProviderAdapter(ABC):
    """Uniform create/comment/field/status contract for one provider.

    Skip paths (unmapped status, no field configured, target not found)
    return False instead of raising. Failures raise ProviderError.
    """

    provider: ClassVar[Provider]

    # Config fields that must all be non-empty for "configured"
    required_fields: ClassVar[tuple[str, ...]] = ("token", "container_id")

    # Fixed lookup from feedback status to the provider's native value
    status_map: ClassVar[dict[FeedbackStatus, str]] = {}

    # Whether labels are sent natively or rendered into the body
    native_labels: ClassVar[bool] = False

    # Whether the provider has a free-form numeric vote field
    supports_vote_field: ClassVar[bool] = False

    def is_configured(self, config: IntegrationSettings) -> bool:
        return all(getattr(config, name) for name in self.required_fields)

    def is_active(self, config: IntegrationSettings) -> bool:
        return self.is_configured(config) and config.is_active

    def map_status(self, status: FeedbackStatus) -> str | None:
        return self.status_map.get(status)

    def vote_field_id(self, config: IntegrationSettings) -> str | None:
        """Configured vote field, or None when vote mirroring does not apply."""
        if not self.supports_vote_field:
            return None
        return config.votes_field or None

    @abstractmethod
    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        """Create one work item and return its link."""

    @abstractmethod
    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        """Post a provider-native comment on an existing work item."""

    async def update_numeric_field(
        self,
        config: IntegrationSettings,
        external_id: str,
        field_id: str | None,
        value: int,
    ) -> bool:
        """Set a numeric field. No-op for providers without one."""
        logger.debug("{} has no numeric field support, skipping", self.provider.display_name)
        return False

    @abstractmethod
    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        """Move the work item to the native equivalent of ``status``."""

    async def aclose(self) -> None:
        """Release network resources."""
        return None

    def _skip(self, reason: str, *args: Any) -> bool:
        logger.debug(f"{self.provider.display_name}: {reason}, skipping", *args)
        return False


class HttpProviderAdapter(ProviderAdapter):
    """ProviderAdapter backed by one shared httpx.AsyncClient.

    Usage:
        adapter = ClickUpAdapter()
        ref = await adapter.create_work_item(config, draft)
        await adapter.aclose()

    Tests inject ``transport=httpx.MockTransport(handler)``.
    """

    base_url: ClassVar[str]

    def __init__(
        self,
        http_config: HttpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http_config = http_config or get_settings().http
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def _http(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._http_config.timeout_seconds,
                headers={"User-Agent": self._http_config.user_agent},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self, config: IntegrationSettings) -> dict[str, str]:
        """Per-request auth headers built from the project's token."""
        return {"Authorization": config.token or ""}

    async def _request(
        self,
        method: str,
        path: str,
        config: IntegrationSettings,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            ProviderError: On timeout, transport failure or HTTP status >= 400
        """
        name = self.provider.display_name
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._auth_headers(config),
            )
        except httpx.TimeoutException as e:
            raise ProviderError(
                name, f"Request timed out after {self._http_config.timeout_seconds}s"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(name, f"Network error: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(name, _error_message(response), http_status=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"text": response.text}


class GraphQLProviderAdapter(HttpProviderAdapter):
    """HttpProviderAdapter for providers with a single GraphQL endpoint."""

    graphql_path: ClassVar[str] = ""

    async def _graphql(
        self,
        config: IntegrationSettings,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run a query or mutation and return its ``data`` object.

        Raises:
            ProviderError: On transport failure or a non-empty ``errors`` list
        """
        body = await self._request(
            "POST",
            self.graphql_path,
            config,
            json={"query": query, "variables": variables or {}},
        )
        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            first = errors[0]
            message = first.get("message", str(first)) if isinstance(first, dict) else str(first)
            raise ProviderError(self.provider.display_name, message)
        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise ProviderError(self.provider.display_name, "Missing data in GraphQL response")
        return data


def _error_message(response: httpx.Response) -> str:
    """Best-effort extraction of a provider's error text."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("err", "message", "error", "error_message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return str(payload)[:500]
