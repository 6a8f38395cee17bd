"""Slack incoming-webhook notifier."""

from __future__ import annotations

from typing import Any

import httpx

from feedback_sync.config import HttpConfig, get_settings
from feedback_sync.providers.exceptions import ProviderError
from feedback_sync.schemas import SLACK, SLACK_WEBHOOK_PREFIX, FeedbackCategory, FeedbackStatus

_STATUS_EMOJI: dict[FeedbackStatus, str] = {
    FeedbackStatus.APPROVED: ":white_check_mark:",
    FeedbackStatus.IN_PROGRESS: ":arrows_counterclockwise:",
    FeedbackStatus.TESTFLIGHT: ":test_tube:",
    FeedbackStatus.COMPLETED: ":tada:",
    FeedbackStatus.REJECTED: ":x:",
}


class SlackNotifier:
    """Posts project events to a Slack incoming webhook.

    The webhook URL comes from the project's "slack" integration row; the
    caller decides whether a notification is enabled.
    """

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
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._http_config.timeout_seconds,
                headers={"User-Agent": self._http_config.user_agent},
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def notify_new_feedback(
        self,
        webhook_url: str,
        *,
        project_name: str,
        title: str,
        description: str,
        category: FeedbackCategory,
        author_email: str | None = None,
    ) -> None:
        lines = [
            f"*{_escape(title)}*",
            _escape(_truncate(description, 300)),
            f"_{category.display_name}_" + (f" · {_escape(author_email)}" if author_email else ""),
        ]
        await self._post(
            webhook_url,
            text=f"New feedback in {project_name}: {title}",
            heading=f":speech_balloon: New feedback in *{_escape(project_name)}*",
            body="\n".join(lines),
        )

    async def notify_new_comment(
        self,
        webhook_url: str,
        *,
        project_name: str,
        feedback_title: str,
        comment: str,
        is_admin: bool,
    ) -> None:
        commenter = "Admin" if is_admin else "User"
        await self._post(
            webhook_url,
            text=f"New comment on {feedback_title}",
            heading=f":memo: New {commenter.lower()} comment in *{_escape(project_name)}*",
            body=f"*{_escape(feedback_title)}*\n>{_escape(_truncate(comment, 500))}",
        )

    async def notify_status_change(
        self,
        webhook_url: str,
        *,
        project_name: str,
        feedback_title: str,
        old_status: FeedbackStatus,
        new_status: FeedbackStatus,
    ) -> None:
        emoji = _STATUS_EMOJI.get(new_status, ":clipboard:")
        await self._post(
            webhook_url,
            text=f"{feedback_title}: {old_status.display_name} → {new_status.display_name}",
            heading=f"{emoji} Status update in *{_escape(project_name)}*",
            body=(
                f"*{_escape(feedback_title)}*\n"
                f"~{old_status.display_name}~ → *{new_status.display_name}*"
            ),
        )

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _post(self, webhook_url: str, *, text: str, heading: str, body: str) -> None:
        """Send one message.

        Raises:
            ProviderError: On an invalid URL, transport failure or non-2xx reply
        """
        if not webhook_url.startswith(SLACK_WEBHOOK_PREFIX):
            raise ProviderError(SLACK, "Invalid Slack webhook URL")

        payload: dict[str, Any] = {
            "text": text,
            "blocks": [
                {"type": "section", "text": {"type": "mrkdwn", "text": heading}},
                {"type": "section", "text": {"type": "mrkdwn", "text": body}},
            ],
        }
        try:
            response = await self._http.post(webhook_url, json=payload)
        except httpx.TimeoutException as e:
            raise ProviderError(SLACK, "Webhook request timed out") from e
        except httpx.HTTPError as e:
            raise ProviderError(SLACK, f"Network error: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(
                SLACK, response.text[:200] or "Webhook rejected", http_status=response.status_code
            )


def _escape(text: str) -> str:
    """Escape Slack mrkdwn control characters."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"
