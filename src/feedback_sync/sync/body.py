"""Canonical markdown for work item bodies and mirrored comments."""

from collections.abc import Iterable

from feedback_sync.schemas import FeedbackCategory, FeedbackStatus


def compose_labels(
    default_labels: Iterable[str],
    extra_labels: Iterable[str] | None,
    category: FeedbackCategory,
) -> list[str]:
    """Project defaults ∪ caller extras ∪ {category}, first occurrence wins.

    The category label is always present regardless of caller input.
    """
    labels: list[str] = []
    for label in [*default_labels, *(extra_labels or []), category.value]:
        label = label.strip()
        if label and label not in labels:
            labels.append(label)
    return labels


def format_revenue(amount: float) -> str:
    return f"${amount:,.2f}"


def build_work_item_body(
    *,
    description: str,
    category: FeedbackCategory,
    status: FeedbackStatus,
    vote_count: int,
    project_name: str,
    source_name: str,
    revenue: float | None = None,
    author_email: str | None = None,
    tags: list[str] | None = None,
) -> str:
    """Build the markdown description shared by every provider.

    Args:
        description: Feedback description as submitted
        category: Feedback category (rendered as the heading)
        status: Current feedback status
        vote_count: Current vote count
        project_name: Owning project's name
        source_name: Product name for the metadata and footer
        revenue: Aggregate MRR; the line is omitted unless positive
        author_email: Submitter email, when captured
        tags: Rendered as a Tags line for providers without native labels

    Returns:
        Markdown body
    """
    lines = [
        f"## {category.display_name}",
        "",
        description,
        "",
        "---",
        "",
        f"**Source:** {source_name}",
        f"**Project:** {project_name}",
        f"**Status:** {status.display_name}",
        f"**Votes:** {vote_count}",
    ]
    if revenue is not None and revenue > 0:
        lines.append(f"**MRR:** {format_revenue(revenue)}")
    if author_email:
        lines.append(f"**Submitted by:** {author_email}")
    if tags:
        lines.append(f"**Tags:** {', '.join(tags)}")
    lines.extend(["", "---", f"*Synced from {source_name}*"])
    return "\n".join(lines)


def build_comment_text(text: str, *, is_admin: bool, source_name: str) -> str:
    """Markdown for a comment mirrored into a provider."""
    commenter = "Admin" if is_admin else "User"
    return "\n".join(
        [
            f"**[{commenter}] Comment:**",
            "",
            text,
            "",
            "---",
            f"_Synced from {source_name}_",
        ]
    )
