"""Subscriber revenue lookup used when describing work items."""

from collections.abc import Iterable
from typing import Protocol

from feedback_sync.db.repositories import SDKUserRepository


class RevenueAggregator(Protocol):
    """Total monthly revenue of a feedback item's author and voters."""

    async def total_revenue(
        self,
        project_id: int,
        author_id: str,
        voter_ids: Iterable[str],
    ) -> float: ...


class SubscriberRevenueAggregator:
    """Sums tracked SDK user MRR over {author} ∪ voters.

    Each user counts once even if the author also voted.
    """

    def __init__(self, sdk_users: SDKUserRepository) -> None:
        self._sdk_users = sdk_users

    async def total_revenue(
        self,
        project_id: int,
        author_id: str,
        voter_ids: Iterable[str],
    ) -> float:
        user_ids = {author_id, *voter_ids}
        return await self._sdk_users.total_mrr(project_id, user_ids)
