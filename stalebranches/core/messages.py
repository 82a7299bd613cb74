"""Titles and bodies for tracking issues and their update comments."""
from __future__ import annotations

from typing import Optional

from ..models import CommentMode

FOOTER = "This issue was generated by stale-branches."


def issue_title(branch_name: str) -> str:
    """The title that ties a tracking issue to its branch."""
    return f"[{branch_name}] is STALE"


def days_until_delete(commit_age: int, days_before_delete: int) -> int:
    return max(0, days_before_delete - commit_age)


def _deletion_line(commit_age: int, days_before_delete: int) -> str:
    remaining = days_until_delete(commit_age, days_before_delete)
    if remaining == 0:
        return "This branch is scheduled for deletion on the next run."
    unit = "day" if remaining == 1 else "days"
    return f"This branch will be automatically deleted in {remaining} {unit}."


def _mention(committer: str, tag_committer: bool) -> Optional[str]:
    if not tag_committer or not committer or committer == "Unknown":
        return None
    return f"@{committer}"


def issue_body(
    branch_name: str,
    commit_age: int,
    committer: str,
    days_before_delete: int,
    tag_committer: bool = False,
) -> str:
    lines = [
        f"[{branch_name}] has had no activity for {commit_age} days.",
        "",
        _deletion_line(commit_age, days_before_delete),
    ]
    mention = _mention(committer, tag_committer)
    if mention:
        lines += ["", f"{mention}, you were the last person to commit to this branch."]
    lines += ["", FOOTER]
    return "\n".join(lines)


def issue_comment(
    branch_name: str,
    commit_age: int,
    committer: str,
    mode: CommentMode,
    days_before_delete: int,
    label: str,
    tag_committer: bool = False,
) -> Optional[str]:
    """Update comment for an existing issue, or ``None`` when comments are off."""
    if mode == CommentMode.OFF:
        return None

    lines = [
        f"[{branch_name}] has had no activity for {commit_age} days.",
        "",
        _deletion_line(commit_age, days_before_delete),
    ]
    if mode == CommentMode.FULL:
        mention = _mention(committer, tag_committer)
        if mention:
            lines += ["", f"{mention}, please push to the branch if it is still needed."]
        lines += ["", f"Issues labelled `{label}` close on their own once the branch sees a new commit."]
    return "\n".join(lines)
