"""Base schema classes."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class SchemaBase(BaseModel):
    """Pydantic base that can read SQLAlchemy rows."""

    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
    )

    @classmethod
    def from_orm(cls, obj: Any) -> Self:
        """Build the schema from an ORM instance (or any attribute bag)."""
        return cls.model_validate(obj)


class SnapshotBase(SchemaBase):
    """Immutable value handed to adapters and background tasks.

    Snapshots outlive the session they were read from, so they must not
    be mutated after the fact; use ``model_copy(update=...)`` instead.
    """

    model_config = ConfigDict(frozen=True)
