"""Push errors surfaced to the direct caller."""


class SyncError(Exception):
    """Base exception for push failures the caller must translate."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class NotConfiguredError(SyncError):
    """Raised when the integration lacks its required identifying fields."""

    pass


class NotActiveError(SyncError):
    """Raised when the integration is configured but switched off."""

    pass


class FeedbackNotFoundError(SyncError):
    """Raised when the feedback item does not exist in the project."""

    def __init__(self, project_id: int, feedback_id: int) -> None:
        super().__init__(f"Feedback {feedback_id} not found in project {project_id}")
        self.project_id = project_id
        self.feedback_id = feedback_id


class AlreadyLinkedError(SyncError):
    """Raised when the feedback item already has a work item in the provider."""

    def __init__(self, feedback_id: int, provider: str, noun: str, url: str | None = None) -> None:
        super().__init__(f"Feedback already has a {provider} {noun}", provider=provider)
        self.feedback_id = feedback_id
        self.url = url
