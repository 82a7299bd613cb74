"""Reconciliation of branches against their tracking issues."""

from .budget import get_issue_budget
from .issue_index import IssueIndex
from .messages import issue_title
from .reconciler import StaleBranchReconciler, classify_age

__all__ = [
    "get_issue_budget",
    "IssueIndex",
    "issue_title",
    "StaleBranchReconciler",
    "classify_age",
]
