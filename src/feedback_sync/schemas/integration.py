"""Pydantic schemas for IntegrationConfig."""

from typing import Any

from pydantic import Field, field_validator

from .base import SchemaBase, SnapshotBase

SLACK_WEBHOOK_PREFIX = "https://hooks.slack.com/"

# Fields that an explicit empty string clears to "unset"
_CLEARABLE_STRING_FIELDS = frozenset(
    {
        "token",
        "owner",
        "container_id",
        "container_name",
        "group_id",
        "group_name",
        "status_field",
        "votes_field",
        "webhook_url",
    }
)


class IntegrationSettings(SnapshotBase):
    """Read-only snapshot of one project's integration config.

    Sync code works on this snapshot rather than the ORM row so background
    tasks never touch the session the snapshot came from.
    """

    project_id: int
    provider: str

    token: str | None = Field(default=None, repr=False)
    owner: str | None = None
    container_id: str | None = None
    container_name: str | None = None
    group_id: str | None = None
    group_name: str | None = None
    default_labels: list[str] = Field(default_factory=list)
    status_field: str | None = None
    votes_field: str | None = None

    sync_status_enabled: bool = False
    sync_comments_enabled: bool = False
    is_active: bool = True

    webhook_url: str | None = Field(default=None, repr=False)
    notify_new_feedback: bool = True
    notify_new_comments: bool = True
    notify_status_changes: bool = True

    @field_validator("default_labels", mode="before")
    @classmethod
    def none_labels_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class IntegrationSettingsUpdate(SchemaBase):
    """Partial update of an integration config.

    Only fields the caller actually sent are applied. An explicit empty
    string clears a string field; an absent field leaves it untouched.
    """

    token: str | None = None
    owner: str | None = None
    container_id: str | None = None
    container_name: str | None = None
    group_id: str | None = None
    group_name: str | None = None
    default_labels: list[str] | None = None
    status_field: str | None = None
    votes_field: str | None = None

    sync_status_enabled: bool | None = None
    sync_comments_enabled: bool | None = None
    is_active: bool | None = None

    webhook_url: str | None = None
    notify_new_feedback: bool | None = None
    notify_new_comments: bool | None = None
    notify_status_changes: bool | None = None

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str | None) -> str | None:
        """Slack incoming webhooks only."""
        if v and not v.startswith(SLACK_WEBHOOK_PREFIX):
            raise ValueError(
                f"Invalid Slack webhook URL. It must start with {SLACK_WEBHOOK_PREFIX}"
            )
        return v

    @field_validator("default_labels")
    @classmethod
    def clean_labels(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [label.strip() for label in v if label and label.strip()]

    def changes(self) -> dict[str, Any]:
        """Normalized field → value mapping for the fields that were sent.

        Returns:
            Dict suitable for setattr on an IntegrationConfig row
        """
        result: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if name in _CLEARABLE_STRING_FIELDS:
                result[name] = value or None
            elif name == "default_labels":
                result[name] = value or []
            elif value is not None:
                result[name] = value
        return result
