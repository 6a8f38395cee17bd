"""Sync module - push feedback to work trackers and fan out changes.

Services:
- SyncDispatcher: single/bulk push and best-effort fan-out triggers
- IntegrationRegistry: per-project provider resolution (configured/active)
- BackgroundTasks: detached best-effort execution with failure recording
"""

from .background import BackgroundTasks, FailureRecorder, SyncFailureRecorder, best_effort
from .body import build_comment_text, build_work_item_body, compose_labels, format_revenue
from .dispatcher import SyncDispatcher
from .exceptions import (
    AlreadyLinkedError,
    FeedbackNotFoundError,
    NotActiveError,
    NotConfiguredError,
    SyncError,
)
from .registry import IntegrationRegistry, ResolvedIntegration
from .results import BulkResult, PushResult
from .revenue import RevenueAggregator, SubscriberRevenueAggregator

__all__ = [
    # Dispatcher
    "SyncDispatcher",
    # Registry
    "IntegrationRegistry",
    "ResolvedIntegration",
    # Results
    "BulkResult",
    "PushResult",
    # Background execution
    "BackgroundTasks",
    "FailureRecorder",
    "SyncFailureRecorder",
    "best_effort",
    # Body formatting
    "build_comment_text",
    "build_work_item_body",
    "compose_labels",
    "format_revenue",
    # Revenue
    "RevenueAggregator",
    "SubscriberRevenueAggregator",
    # Exceptions
    "AlreadyLinkedError",
    "FeedbackNotFoundError",
    "NotActiveError",
    "NotConfiguredError",
    "SyncError",
]
