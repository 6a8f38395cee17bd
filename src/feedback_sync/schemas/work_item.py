"""Canonical work item shapes exchanged with provider adapters."""

from pydantic import Field

from .base import SnapshotBase
from .enums import FeedbackCategory, FeedbackStatus


class WorkItemDraft(SnapshotBase):
    """Provider-independent description of a work item to create."""

    feedback_id: int
    title: str = Field(min_length=1, max_length=500)
    body: str = Field(description="Markdown description body")
    labels: list[str] = Field(default_factory=list, description="Composed label/tag set")
    category: FeedbackCategory
    status: FeedbackStatus
    vote_count: int = Field(default=0, ge=0)


class WorkItemRef(SnapshotBase):
    """What a provider returns after creating a work item."""

    url: str
    external_id: str
    identifier: str | None = Field(
        default=None,
        description="Secondary human-readable id (e.g. Linear 'ENG-42')",
    )
