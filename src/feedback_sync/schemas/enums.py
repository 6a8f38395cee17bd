"""Enums shared by the ORM models, schemas and providers."""

from enum import Enum


class FeedbackStatus(str, Enum):
    """Lifecycle of a feedback item.

    Ordered: pending → approved → in_progress → testflight, with
    completed and rejected as terminal states.
    """

    PENDING = "pending"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    TESTFLIGHT = "testflight"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @property
    def display_name(self) -> str:
        """Human-readable name ("in_progress" → "In Progress")."""
        return self.value.replace("_", " ").title()

    @property
    def is_terminal(self) -> bool:
        return self in (FeedbackStatus.COMPLETED, FeedbackStatus.REJECTED)


class FeedbackCategory(str, Enum):
    """Kind of feedback submitted by an end user."""

    FEATURE_REQUEST = "feature_request"
    BUG_REPORT = "bug_report"
    IMPROVEMENT = "improvement"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return {
            FeedbackCategory.FEATURE_REQUEST: "Feature Request",
            FeedbackCategory.BUG_REPORT: "Bug Report",
            FeedbackCategory.IMPROVEMENT: "Improvement",
            FeedbackCategory.OTHER: "Other",
        }[self]


class Provider(str, Enum):
    """External work trackers a feedback item can be pushed to."""

    GITHUB = "github"
    CLICKUP = "clickup"
    NOTION = "notion"
    MONDAY = "monday"
    LINEAR = "linear"
    TRELLO = "trello"

    @property
    def display_name(self) -> str:
        return {
            Provider.GITHUB: "GitHub",
            Provider.CLICKUP: "ClickUp",
            Provider.NOTION: "Notion",
            Provider.MONDAY: "Monday.com",
            Provider.LINEAR: "Linear",
            Provider.TRELLO: "Trello",
        }[self]

    @property
    def work_item_noun(self) -> str:
        """Provider-native name of the mirrored object."""
        return {
            Provider.GITHUB: "issue",
            Provider.CLICKUP: "task",
            Provider.NOTION: "page",
            Provider.MONDAY: "item",
            Provider.LINEAR: "issue",
            Provider.TRELLO: "card",
        }[self]


SLACK = "slack"
"""Integration name of the chat-webhook notifier (not a work tracker)."""


class SubscriptionTier(str, Enum):
    """Billing tier of an admin user."""

    FREE = "free"
    PRO = "pro"
    TEAM = "team"

    def meets_requirement(self, required: "SubscriptionTier") -> bool:
        """Check if this tier is at least ``required``."""
        order = [SubscriptionTier.FREE, SubscriptionTier.PRO, SubscriptionTier.TEAM]
        return order.index(self) >= order.index(required)


class SyncOperation(str, Enum):
    """Outward operations recorded when a best-effort call fails."""

    CREATE = "create"
    COMMENT = "comment"
    VOTES = "votes"
    STATUS = "status"
    NOTIFY = "notify"
    EMAIL = "email"
