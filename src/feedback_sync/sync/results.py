"""Result objects for push operations.

Structured results provide consistent interfaces for the CLI and for
callers that translate them into API responses.
"""

from dataclasses import dataclass, field
from typing import Any

from feedback_sync.schemas import Provider, WorkItemRef


@dataclass
class PushResult:
    """Link created by pushing one feedback item to one provider."""

    feedback_id: int
    """Pushed feedback item."""

    provider: Provider
    """Provider the work item lives in."""

    url: str
    """Provider URL of the work item."""

    external_id: str
    """Provider id of the work item."""

    identifier: str | None = None
    """Secondary human-readable id (Linear only)."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "feedback_id": self.feedback_id,
            "provider": self.provider.value,
            "url": self.url,
            "external_id": self.external_id,
        }
        if self.identifier:
            result["identifier"] = self.identifier
        return result

    @classmethod
    def from_ref(cls, feedback_id: int, provider: Provider, ref: WorkItemRef) -> "PushResult":
        return cls(
            feedback_id=feedback_id,
            provider=provider,
            url=ref.url,
            external_id=ref.external_id,
            identifier=ref.identifier,
        )


@dataclass
class BulkResult:
    """Outcome of a bulk push.

    Every input id appears in exactly one of ``created`` or ``failed``.
    """

    created: list[PushResult] = field(default_factory=list)
    """Links created, in completion order."""

    failed: list[int] = field(default_factory=list)
    """Ids that were not pushed (missing, already linked, or provider error)."""

    errors: dict[int, str] = field(default_factory=dict)
    """Failure reason per failed id (a repeated id keeps its first reason)."""

    @property
    def total(self) -> int:
        return len(self.created) + len(self.failed)

    def add_failure(self, feedback_id: int, error: Exception | str) -> None:
        self.failed.append(feedback_id)
        self.errors.setdefault(feedback_id, str(error))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "created": [item.to_dict() for item in self.created],
            "failed": list(self.failed),
            "errors": {str(k): v for k, v in self.errors.items()},
        }
