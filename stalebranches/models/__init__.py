"""
Core models for stale-branches.
"""

from .models import *

__all__ = [
    "BranchStatus",
    "CommentMode",
    "CompareMode",
    "ReportFormat",
    "Branch",
    "TrackingIssue",
    "RateLimitStatus",
    "BranchComparison",
    "ActionResult",
    "StaleReport",
]
