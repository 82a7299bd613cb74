"""How many tracking issues a run may still open."""
from __future__ import annotations

import structlog

from ..providers.base import BranchHost

logger = structlog.get_logger(__name__)


async def get_issue_budget(provider: BranchHost, max_issues: int, label: str) -> int:
    """Return ``max(0, max_issues - open tracking issues)``.

    Duplicate entries across pages are counted once. If the issues cannot be
    listed the budget is 0, so a failed lookup never licenses new issues.
    """
    try:
        issues = await provider.list_issues(label)
    except Exception as exc:
        logger.error("Failed to calculate issue budget", label=label, error=str(exc))
        return 0

    open_count = len({issue.number for issue in issues})
    budget = max(0, max_issues - open_count)
    logger.info("Issue budget calculated", max_issues=max_issues, open_issues=open_count, budget=budget)
    return budget
