"""Repository pattern implementation for database access.

This module provides repository classes that encapsulate all database
access logic, providing a clean abstraction over SQLAlchemy models.
"""

from .base import BaseRepository
from .feedback import FeedbackRepository
from .integration import INTEGRATION_NAMES, IntegrationConfigRepository
from .project import ProjectRepository
from .sdk_user import SDKUserRepository
from .sync_failure import SyncFailureRepository

__all__ = [
    "BaseRepository",
    "FeedbackRepository",
    "INTEGRATION_NAMES",
    "IntegrationConfigRepository",
    "ProjectRepository",
    "SDKUserRepository",
    "SyncFailureRepository",
]
