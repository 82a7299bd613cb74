"""Working set of open tracking issues, keyed by title."""
from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List

from ..models import TrackingIssue


class IssueIndex:
    """Issues fetched at the start of a run.

    Branches pop their title as they are processed; whatever is left after
    the walk belongs to no current branch. An issue number listed twice is
    kept once.
    """

    def __init__(self, issues: Iterable[TrackingIssue] = ()):
        self._by_title: Dict[str, List[TrackingIssue]] = OrderedDict()
        for issue in issues:
            entries = self._by_title.setdefault(issue.title, [])
            if all(existing.number != issue.number for existing in entries):
                entries.append(issue)

    def match(self, title: str) -> List[TrackingIssue]:
        return list(self._by_title.get(title, ()))

    def pop(self, title: str) -> List[TrackingIssue]:
        return self._by_title.pop(title, [])

    def remaining(self) -> List[TrackingIssue]:
        return [issue for issues in self._by_title.values() for issue in issues]

    def __contains__(self, title: object) -> bool:
        return title in self._by_title

    def __len__(self) -> int:
        return sum(len(issues) for issues in self._by_title.values())
