"""SQLAlchemy ORM models for Feedback Sync."""

from datetime import datetime

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)
from sqlalchemy.types import JSON

from feedback_sync.schemas.enums import (
    FeedbackCategory,
    FeedbackStatus,
    Provider,
    SubscriptionTier,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# ------------------------------------------------------------------------------
# Admin users and projects (owned by the CRUD layer, read by the engine)
# ------------------------------------------------------------------------------
class User(Base):
    """Admin user who owns or belongs to projects."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notify_new_feedback: Mapped[bool] = mapped_column(default=True)
    notify_new_comments: Mapped[bool] = mapped_column(default=True)
    subscription_tier: Mapped[SubscriptionTier] = mapped_column(default=SubscriptionTier.FREE)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class Project(Base):
    """Feedback project; the scope of every integration config."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    is_archived: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    owner: Mapped["User"] = relationship()
    members: Mapped[list["ProjectMember"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )
    integrations: Mapped[list["IntegrationConfig"]] = relationship(
        back_populates="project",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"


class ProjectMember(Base):
    """Membership of a user in a project."""

    __tablename__ = "project_members"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    role: Mapped[str] = mapped_column(String(20), default="member")

    project: Mapped["Project"] = relationship(back_populates="members")
    user: Mapped["User"] = relationship()

    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)


# ------------------------------------------------------------------------------
# FeedbackItem model
# ------------------------------------------------------------------------------
class FeedbackItem(Base):
    """Feedback submitted through the SDK, with per-provider link fields.

    The engine reads title/description/category/status/vote_count and writes
    only the link columns. A link is set at most once per provider.
    """

    __tablename__ = "feedbacks"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"))

    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[FeedbackCategory] = mapped_column(default=FeedbackCategory.FEATURE_REQUEST)
    status: Mapped[FeedbackStatus] = mapped_column(default=FeedbackStatus.PENDING)
    user_id: Mapped[str] = mapped_column(String(200))  # SDK user identifier
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vote_count: Mapped[int] = mapped_column(default=0)

    # --------------------------------------------------------------------------
    # Provider links (url, external id)
    # --------------------------------------------------------------------------
    github_issue_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    github_issue_number: Mapped[int | None] = mapped_column(nullable=True)
    clickup_task_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    clickup_task_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notion_page_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notion_page_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    monday_item_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    monday_item_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    linear_issue_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    linear_issue_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    trello_card_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    trello_card_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    project: Mapped["Project"] = relationship()
    votes: Mapped[list["Vote"]] = relationship(
        back_populates="feedback",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<FeedbackItem(id={self.id}, project={self.project_id}, title='{self.title[:30]}')>"

    def get_link(self, provider: Provider) -> tuple[str, str] | None:
        """Return the (url, external id) pair for a provider, if linked."""
        url_attr, id_attr = LINK_COLUMNS[provider]
        url = getattr(self, url_attr)
        if url is None:
            return None
        external_id = getattr(self, id_attr)
        return url, str(external_id) if external_id is not None else ""

    def has_link(self, provider: Provider) -> bool:
        return self.get_link(provider) is not None

    @property
    def linked_providers(self) -> list[Provider]:
        """Providers this item has already been pushed to."""
        return [p for p in Provider if self.has_link(p)]


# (url column, id column) per provider
LINK_COLUMNS: dict[Provider, tuple[str, str]] = {
    Provider.GITHUB: ("github_issue_url", "github_issue_number"),
    Provider.CLICKUP: ("clickup_task_url", "clickup_task_id"),
    Provider.NOTION: ("notion_page_url", "notion_page_id"),
    Provider.MONDAY: ("monday_item_url", "monday_item_id"),
    Provider.LINEAR: ("linear_issue_url", "linear_issue_id"),
    Provider.TRELLO: ("trello_card_url", "trello_card_id"),
}


class Vote(Base):
    """One SDK user's vote on a feedback item."""

    __tablename__ = "votes"

    id: Mapped[int] = mapped_column(primary_key=True)
    feedback_id: Mapped[int] = mapped_column(ForeignKey("feedbacks.id", ondelete="CASCADE"))
    user_id: Mapped[str] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    feedback: Mapped["FeedbackItem"] = relationship(back_populates="votes")

    __table_args__ = (UniqueConstraint("feedback_id", "user_id", name="uq_vote_user"),)


class SDKUser(Base):
    """End user seen through the SDK, with optional monthly revenue."""

    __tablename__ = "sdk_users"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"))
    user_id: Mapped[str] = mapped_column(String(200))
    mrr: Mapped[float | None] = mapped_column(Float, nullable=True)  # None = not tracked

    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_sdk_user"),)


# ------------------------------------------------------------------------------
# IntegrationConfig model
# ------------------------------------------------------------------------------
class IntegrationConfig(Base):
    """Per-project configuration of one provider or the Slack notifier.

    Column meaning by provider:
        container_id: GitHub repo, ClickUp list, Notion database, Monday board,
                      Linear team, Trello list
        group_id:     Monday group, Linear project, Trello board
        status_field: Notion status property, Monday status column
        votes_field:  ClickUp custom field, Notion number property,
                      Monday numbers column
    """

    __tablename__ = "integration_configs"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"))
    provider: Mapped[str] = mapped_column(String(20))

    # Credentials and target
    token: Mapped[str | None] = mapped_column(String(500), nullable=True)
    owner: Mapped[str | None] = mapped_column(String(200), nullable=True)
    container_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    container_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    group_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    group_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    default_labels: Mapped[list[str]] = mapped_column(JSON, default=list)
    status_field: Mapped[str | None] = mapped_column(String(200), nullable=True)
    votes_field: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Toggles
    sync_status_enabled: Mapped[bool] = mapped_column(default=False)
    sync_comments_enabled: Mapped[bool] = mapped_column(default=False)
    is_active: Mapped[bool] = mapped_column(default=True)

    # Notifier (Slack) columns
    webhook_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notify_new_feedback: Mapped[bool] = mapped_column(default=True)
    notify_new_comments: Mapped[bool] = mapped_column(default=True)
    notify_status_changes: Mapped[bool] = mapped_column(default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    project: Mapped["Project"] = relationship(back_populates="integrations")

    __table_args__ = (UniqueConstraint("project_id", "provider", name="uq_project_provider"),)

    def __repr__(self) -> str:
        return f"<IntegrationConfig(project={self.project_id}, provider='{self.provider}')>"


# ------------------------------------------------------------------------------
# SyncFailure model
# ------------------------------------------------------------------------------
class SyncFailure(Base):
    """Swallowed failure of a best-effort outward call.

    Fan-out never surfaces errors to the end user; this table is the
    operator-facing record of what did not reach a provider.
    """

    __tablename__ = "sync_failures"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int | None] = mapped_column(nullable=True)
    feedback_id: Mapped[int | None] = mapped_column(nullable=True)
    provider: Mapped[str] = mapped_column(String(20))
    operation: Mapped[str] = mapped_column(String(20))

    error_message: Mapped[str] = mapped_column(Text)
    error_type: Mapped[str] = mapped_column(String(100))
    http_status: Mapped[int | None] = mapped_column(nullable=True)

    failed_at: Mapped[datetime] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    def __repr__(self) -> str:
        return (
            f"<SyncFailure(id={self.id}, provider='{self.provider}', "
            f"op='{self.operation}', feedback={self.feedback_id})>"
        )
