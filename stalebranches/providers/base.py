from abc import ABC, abstractmethod
from typing import List

from ..models import Branch, BranchComparison, CommentMode, RateLimitStatus, TrackingIssue


class BranchHost(ABC):
    """Data access for one repository on a branch/issue host.

    Every method may raise ``ProviderError``; callers decide whether that is
    fatal.
    """

    name: str = "host"

    @abstractmethod
    async def list_branches(self) -> List[Branch]:
        pass

    @abstractmethod
    async def get_commit_age(self, sha: str) -> int:
        """Days since the commit's committer date."""

    @abstractmethod
    async def get_committer_login(self, sha: str) -> str:
        pass

    @abstractmethod
    async def compare_branches(self, branch_name: str, base_ref: str | None) -> BranchComparison:
        pass

    @abstractmethod
    async def get_rate_limit(self) -> RateLimitStatus:
        pass

    @abstractmethod
    async def list_issues(self, label: str) -> List[TrackingIssue]:
        """Open issues carrying ``label``, all pages."""

    @abstractmethod
    async def create_issue(
        self,
        branch_name: str,
        commit_age: int,
        committer: str,
        days_before_delete: int,
        label: str,
        tag_committer: bool,
    ) -> int:
        """Open a tracking issue and return its number."""

    @abstractmethod
    async def comment_on_issue(
        self,
        issue_number: int,
        branch_name: str,
        commit_age: int,
        committer: str,
        mode: CommentMode,
        days_before_delete: int,
        label: str,
        tag_committer: bool,
    ) -> None:
        pass

    @abstractmethod
    async def close_issue(self, issue_number: int) -> str:
        """Close an issue and return its new state."""

    @abstractmethod
    async def delete_branch(self, branch_name: str) -> None:
        pass
