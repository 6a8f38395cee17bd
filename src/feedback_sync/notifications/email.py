"""Notification emails sent through the Resend HTTP API."""

from __future__ import annotations

from html import escape

import httpx

from feedback_sync.config import Settings, get_settings
from feedback_sync.logging import get_logger
from feedback_sync.providers.exceptions import ProviderError
from feedback_sync.schemas import FeedbackCategory, FeedbackStatus

logger = get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"
EMAIL = "email"

_STATUS_MESSAGES: dict[FeedbackStatus, str] = {
    FeedbackStatus.APPROVED: "Your feedback has been approved and will be considered for implementation.",
    FeedbackStatus.IN_PROGRESS: "Great news! Work has started on your feedback.",
    FeedbackStatus.TESTFLIGHT: "Your feedback is now available for beta testing.",
    FeedbackStatus.COMPLETED: "Your feedback has been implemented!",
    FeedbackStatus.REJECTED: "After review, this feedback will not be implemented at this time.",
}


class EmailClient:
    """Sends HTML notification emails.

    Without a RESEND_API_KEY every send is skipped, so development setups
    never need mail credentials.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._api_key = settings.resend_api_key
        self._sender = settings.email_from
        self._source_name = settings.sync.source_name
        self._http_config = settings.http
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_enabled(self) -> bool:
        return bool(self._api_key)

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

    async def send(self, to: list[str], subject: str, html: str) -> bool:
        """Send one email to a list of recipients.

        Returns:
            True if sent, False if skipped (no key or no recipients)

        Raises:
            ProviderError: If Resend rejects the request
        """
        if not to:
            return False
        if not self.is_enabled:
            logger.debug("Email disabled (no RESEND_API_KEY), skipping {!r}", subject)
            return False

        try:
            response = await self._http.post(
                RESEND_URL,
                json={"from": self._sender, "to": to, "subject": subject, "html": html},
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            raise ProviderError(EMAIL, f"Network error: {e}") from e

        if response.status_code >= 400:
            raise ProviderError(EMAIL, response.text[:200], http_status=response.status_code)
        return True

    # -------------------------------------------------------------------------
    # Notification emails
    # -------------------------------------------------------------------------

    async def send_new_feedback(
        self,
        to: list[str],
        *,
        project_name: str,
        title: str,
        description: str,
        category: FeedbackCategory,
    ) -> bool:
        body = (
            f"<p>New feedback was submitted to <strong>{escape(project_name)}</strong>.</p>"
            f"<h2>{escape(title)}</h2>"
            f"<p><em>{category.display_name}</em></p>"
            f"<p>{escape(description)}</p>"
        )
        return await self.send(
            to,
            f"[{project_name}] New feedback: {title}",
            self._wrap(body, "You received this email because you enabled feedback notifications."),
        )

    async def send_new_comment(
        self,
        to: list[str],
        *,
        project_name: str,
        feedback_title: str,
        comment: str,
        is_admin: bool,
    ) -> bool:
        commenter = "Admin" if is_admin else "User"
        body = (
            f"<p>{commenter} commented on <strong>{escape(feedback_title)}</strong>"
            f" in {escape(project_name)}.</p>"
            f"<blockquote>{escape(comment)}</blockquote>"
        )
        return await self.send(
            to,
            f"[{project_name}] New comment on: {feedback_title}",
            self._wrap(body, "You received this email because you enabled comment notifications."),
        )

    async def send_status_change(
        self,
        to: list[str],
        *,
        project_name: str,
        feedback_title: str,
        old_status: FeedbackStatus,
        new_status: FeedbackStatus,
    ) -> bool:
        message = _STATUS_MESSAGES.get(new_status, "The status of your feedback has been updated.")
        body = (
            f"<p>Your feedback in <strong>{escape(project_name)}</strong> has a status update.</p>"
            f"<h2>{escape(feedback_title)}</h2>"
            f"<p><s>{old_status.display_name}</s> → <strong>{new_status.display_name}</strong></p>"
            f"<p>{message}</p>"
        )
        return await self.send(
            to,
            f"[{project_name}] {feedback_title} - {new_status.display_name}",
            self._wrap(body, "You received this email because you submitted this feedback."),
        )

    def _wrap(self, body: str, footer: str) -> str:
        return (
            '<!DOCTYPE html><html><head><meta charset="utf-8"></head>'
            '<body style="font-family: sans-serif; line-height: 1.6; max-width: 600px;">'
            f"{body}<hr><p style=\"font-size: 12px; color: #888;\">{footer}<br>"
            f"{escape(self._source_name)}</p></body></html>"
        )
