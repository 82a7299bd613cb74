"""
Core models for stale-branches.
"""

from enum import Enum
from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class BranchStatus(str, Enum):
    """Age classification of a branch."""
    ACTIVE = "active"
    STALE = "stale"
    DELETE = "delete"


class CommentMode(str, Enum):
    """How much detail update comments on existing issues carry."""
    OFF = "off"
    BRIEF = "brief"
    FULL = "full"


class CompareMode(str, Enum):
    """What the base-branch comparison is used for."""
    OFF = "off"
    INFO = "info"
    SAVE = "save"


class ReportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"


class Branch(BaseModel):
    """A branch and the SHA of its most recent commit."""
    name: str
    commit_sha: str


class TrackingIssue(BaseModel):
    """An open issue carrying the stale-branch label."""
    title: str
    number: int


class RateLimitStatus(BaseModel):
    """Core API rate-limit usage."""
    used: float = Field(0.0, ge=0.0, description="Percentage of the limit consumed")
    limit: int = 0
    remaining: int = 0
    reset: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "used": 12.5,
                "limit": 5000,
                "remaining": 4375,
                "reset": "2024-01-01T12:00:00Z",
            }
        }


class BranchComparison(BaseModel):
    """Result of comparing a branch with the base ref."""
    save: bool = False
    ahead_by: Optional[int] = None
    behind_by: Optional[int] = None
    reason: str = ""


class ActionResult(BaseModel):
    """Outcome of a single mutating call against the host."""
    ok: bool
    state: Optional[str] = None
    issue_number: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, state: str = None, issue_number: int = None) -> "ActionResult":
        return cls(ok=True, state=state, issue_number=issue_number)

    @classmethod
    def failure(cls, error: str, issue_number: int = None) -> "ActionResult":
        return cls(ok=False, error=error, issue_number=issue_number)


class StaleReport(BaseModel):
    """What a run did, kept up to date while the walk progresses."""
    stale_branches: List[str] = Field(default_factory=list)
    deleted_branches: List[str] = Field(default_factory=list)
    total_branches: int = 0
    total_assessed: int = 0
    issues_created: int = 0
    issues_closed: int = 0
    orphans_closed: int = 0
    failed: bool = False
    failure_reason: Optional[str] = None

    def mark_stale(self, branch: str) -> None:
        if branch not in self.stale_branches:
            self.stale_branches.append(branch)

    def mark_deleted(self, branch: str) -> None:
        if branch in self.stale_branches:
            self.stale_branches.remove(branch)
        if branch not in self.deleted_branches:
            self.deleted_branches.append(branch)

    def fail(self, reason: str) -> None:
        self.failed = True
        self.failure_reason = reason

    def outputs(self) -> Dict[str, List[str]]:
        """Step outputs keyed the way the workflow consumes them."""
        return {
            "stale-branches": list(self.stale_branches),
            "deleted-branches": list(self.deleted_branches),
        }
