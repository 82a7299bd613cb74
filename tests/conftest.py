"""Pytest configuration and fixtures."""
import os
import sys
from typing import Dict, List, Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set test environment variables
os.environ["SB_LOG_LEVEL"] = "ERROR"

from stalebranches.config import Settings
from stalebranches.core.messages import issue_title
from stalebranches.models import Branch, BranchComparison, CommentMode, RateLimitStatus, TrackingIssue
from stalebranches.providers.base import BranchHost
from stalebranches.utils.errors import ProviderError

LABEL = "stale branch"
MUTATIONS = {"create_issue", "comment_on_issue", "close_issue", "delete_branch"}


class FakeHost(BranchHost):
    """In-memory repository host recording every call."""

    name = "fake"

    def __init__(self):
        self.branches: Dict[str, dict] = {}
        self.issues: Dict[int, dict] = {}
        self.rate_limits: List[float] = []
        self.default_usage = 10.0
        self.failing: set = set()
        self.calls: List[tuple] = []
        self._next_number = 100

    # --- setup helpers ---
    def add_branch(self, name: str, age: int, save: bool = False, login: str = "octocat") -> None:
        self.branches[name] = {"sha": f"sha-{name}", "age": age, "save": save, "login": login}

    def add_issue(self, title: str, label: str = LABEL, number: Optional[int] = None) -> int:
        number = number or self._take_number()
        self.issues[number] = {"title": title, "state": "open", "labels": [label], "comments": []}
        return number

    def add_branch_issue(self, branch_name: str, label: str = LABEL) -> int:
        return self.add_issue(issue_title(branch_name), label=label)

    def open_issues(self) -> List[TrackingIssue]:
        return [
            TrackingIssue(title=issue["title"], number=number)
            for number, issue in sorted(self.issues.items())
            if issue["state"] == "open"
        ]

    def calls_to(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def mutations(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in MUTATIONS]

    def _take_number(self) -> int:
        self._next_number += 1
        return self._next_number

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failing:
            raise ProviderError(f"{name} failed", provider=self.name)

    def _branch_by_sha(self, sha: str) -> dict:
        for branch in self.branches.values():
            if branch["sha"] == sha:
                return branch
        raise ProviderError("No commit found for SHA", provider=self.name, details={"sha": sha})

    # --- BranchHost ---
    async def list_branches(self) -> List[Branch]:
        self._record("list_branches")
        return [Branch(name=name, commit_sha=data["sha"]) for name, data in self.branches.items()]

    async def get_commit_age(self, sha: str) -> int:
        self._record("get_commit_age", sha)
        return self._branch_by_sha(sha)["age"]

    async def get_committer_login(self, sha: str) -> str:
        self._record("get_committer_login", sha)
        return self._branch_by_sha(sha)["login"]

    async def compare_branches(self, branch_name: str, base_ref: Optional[str]) -> BranchComparison:
        self._record("compare_branches", branch_name, base_ref)
        save = self.branches[branch_name]["save"]
        return BranchComparison(save=save, reason="ahead of base" if save else "")

    async def get_rate_limit(self) -> RateLimitStatus:
        self._record("get_rate_limit")
        used = self.rate_limits.pop(0) if self.rate_limits else self.default_usage
        return RateLimitStatus(used=used, limit=5000, remaining=int(5000 * (100 - used) / 100))

    async def list_issues(self, label: str) -> List[TrackingIssue]:
        self._record("list_issues", label)
        return [
            TrackingIssue(title=issue["title"], number=number)
            for number, issue in sorted(self.issues.items())
            if issue["state"] == "open" and label in issue["labels"]
        ]

    async def create_issue(self, branch_name, commit_age, committer, days_before_delete, label, tag_committer) -> int:
        self._record("create_issue", branch_name, commit_age, committer, tag_committer)
        return self.add_issue(issue_title(branch_name), label=label)

    async def comment_on_issue(
        self, issue_number, branch_name, commit_age, committer, mode: CommentMode, days_before_delete, label, tag_committer
    ) -> None:
        self._record("comment_on_issue", issue_number, branch_name, mode)
        self.issues[issue_number]["comments"].append(commit_age)

    async def close_issue(self, issue_number: int) -> str:
        self._record("close_issue", issue_number)
        self.issues[issue_number]["state"] = "closed"
        return "closed"

    async def delete_branch(self, branch_name: str) -> None:
        self._record("delete_branch", branch_name)
        del self.branches[branch_name]


def make_settings(**overrides) -> Settings:
    values = dict(
        github_token="test-token",
        repository="owner/repo",
        days_before_stale=5,
        days_before_delete=10,
        max_issues=3,
        stale_branch_label=LABEL,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Environment for a complete configuration."""
    test_vars = {
        "GITHUB_TOKEN": "env-token",
        "GITHUB_REPOSITORY": "octo/repo",
        "SB_DAYS_BEFORE_STALE": "30",
        "SB_DAYS_BEFORE_DELETE": "60",
        "SB_LOG_LEVEL": "ERROR",
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars
