"""Pydantic schemas for Feedback Sync.

This module provides input validation and output serialization models.
"""

from .base import SchemaBase, SnapshotBase
from .enums import (
    SLACK,
    FeedbackCategory,
    FeedbackStatus,
    Provider,
    SubscriptionTier,
    SyncOperation,
)
from .integration import (
    SLACK_WEBHOOK_PREFIX,
    IntegrationSettings,
    IntegrationSettingsUpdate,
)
from .work_item import WorkItemDraft, WorkItemRef

__all__ = [
    # Base
    "SchemaBase",
    "SnapshotBase",
    # Enums
    "FeedbackCategory",
    "FeedbackStatus",
    "Provider",
    "SLACK",
    "SubscriptionTier",
    "SyncOperation",
    # Integration settings
    "IntegrationSettings",
    "IntegrationSettingsUpdate",
    "SLACK_WEBHOOK_PREFIX",
    # Work items
    "WorkItemDraft",
    "WorkItemRef",
]
