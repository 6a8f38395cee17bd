"""Database module for Feedback Sync."""

from feedback_sync.db.engine import (
    create_tables,
    dispose_engine,
    get_engine,
    get_session,
    get_session_factory,
    use_database,
)
from feedback_sync.db.models import (
    LINK_COLUMNS,
    Base,
    FeedbackItem,
    IntegrationConfig,
    Project,
    ProjectMember,
    SDKUser,
    SyncFailure,
    User,
    Vote,
)
from feedback_sync.db.repositories import (
    BaseRepository,
    FeedbackRepository,
    IntegrationConfigRepository,
    ProjectRepository,
    SDKUserRepository,
    SyncFailureRepository,
)

__all__ = [
    # Models
    "Base",
    "FeedbackItem",
    "IntegrationConfig",
    "LINK_COLUMNS",
    "Project",
    "ProjectMember",
    "SDKUser",
    "SyncFailure",
    "User",
    "Vote",
    # Engine
    "create_tables",
    "dispose_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
    "use_database",
    # Repositories
    "BaseRepository",
    "FeedbackRepository",
    "IntegrationConfigRepository",
    "ProjectRepository",
    "SDKUserRepository",
    "SyncFailureRepository",
]
