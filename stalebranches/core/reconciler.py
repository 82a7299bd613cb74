"""
Stale branch reconciliation.

One run walks every branch in order, classifies it by the age of its last
commit and brings its tracking issue in line: open one, comment on it, close
it, or delete the branch once the grace period is over. Issues left over
after the walk belong to no current branch and are closed.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

import structlog

from ..config import Settings
from ..models import ActionResult, Branch, BranchComparison, BranchStatus, RateLimitStatus, StaleReport, TrackingIssue
from ..providers.base import BranchHost
from ..utils.errors import RateLimitExceededError
from ..utils.time import minutes_between, now_millis
from .budget import get_issue_budget
from .issue_index import IssueIndex
from .messages import issue_title

logger = structlog.get_logger(__name__)


def classify_age(commit_age: int, days_before_stale: int, days_before_delete: int) -> BranchStatus:
    """Bucket a commit age. An age equal to ``days_before_stale`` is stale."""
    if commit_age > days_before_delete:
        return BranchStatus.DELETE
    if commit_age >= days_before_stale:
        return BranchStatus.STALE
    return BranchStatus.ACTIVE


class StaleBranchReconciler:
    """Runs one reconciliation pass against a branch host.

    Calls are awaited one at a time so the issue budget and the rate-limit
    guard always see the effect of the previous call.
    """

    def __init__(self, provider: BranchHost, settings: Settings):
        self.provider = provider
        self.settings = settings
        self.report = StaleReport()
        self.issues = IssueIndex()
        self.issue_budget = 0

    async def run(self) -> StaleReport:
        """Reconcile every branch, then close orphaned issues.

        Never raises: a rate-limit abort or an unexpected error marks the
        report as failed and the partial report is returned.
        """
        try:
            branches, branches_listed = await self._load_branches()
            self.report.total_branches = len(branches)

            self.issues, listed = await self._load_issues()
            if listed:
                self.issue_budget = await get_issue_budget(
                    self.provider, self.settings.max_issues, self.settings.stale_branch_label
                )
            else:
                # Without the current issues a new one could duplicate an existing one.
                logger.warning("Issue creation disabled for this run: existing issues unknown")
                self.issue_budget = 0

            for branch in branches:
                await self.check_rate_limit()
                await self.assess_branch(branch)

            if branches_listed:
                await self.close_orphans()
            else:
                logger.warning("Orphaned issues left open: current branches unknown")
                self.report.fail("Failed to list branches.")
        except RateLimitExceededError as exc:
            logger.warning(exc.message, **exc.details)
            self.report.fail(exc.message)
        except Exception as exc:
            logger.error("Run aborted", error=str(exc), exc_info=True)
            self.report.fail(f"Action failed. Error: {exc}")
        return self.report

    # --- guard ---
    async def check_rate_limit(self) -> RateLimitStatus:
        """Raise ``RateLimitExceededError`` when usage is over the threshold."""
        try:
            status = await self.provider.get_rate_limit()
        except Exception as exc:
            logger.warning("Failed to read rate limit", error=str(exc))
            return RateLimitStatus()

        if status.used > self.settings.rate_limit_threshold:
            minutes = minutes_between(status.reset, now_millis()) if status.reset else None
            raise RateLimitExceededError(status.used, self.settings.rate_limit_threshold, minutes)
        return status

    # --- reads with safe defaults ---
    async def _load_branches(self) -> Tuple[List[Branch], bool]:
        try:
            branches = await self.provider.list_branches()
        except Exception as exc:
            logger.error("Failed to list branches", error=str(exc))
            return [], False
        logger.info("Branches collected", count=len(branches))
        return branches, True

    async def _load_issues(self) -> Tuple[IssueIndex, bool]:
        try:
            issues = await self.provider.list_issues(self.settings.stale_branch_label)
        except Exception as exc:
            logger.error("Failed to locate issues", label=self.settings.stale_branch_label, error=str(exc))
            return IssueIndex(), False
        return IssueIndex(issues), True

    async def _committer(self, branch: Branch) -> Tuple[str, bool]:
        """Login of the last committer and whether it was resolved."""
        if not self.settings.tag_last_committer:
            return self.settings.default_committer, False
        try:
            return await self.provider.get_committer_login(branch.commit_sha), True
        except Exception as exc:
            logger.warning("Failed to resolve last committer", branch=branch.name, error=str(exc))
            return self.settings.default_committer, False

    async def _compare(self, branch: Branch) -> BranchComparison:
        try:
            return await self.provider.compare_branches(branch.name, self.settings.compare_branches)
        except Exception as exc:
            logger.warning("Branch comparison failed; keeping branch", branch=branch.name, error=str(exc))
            return BranchComparison(save=True, reason="comparison failed")

    # --- per branch ---
    async def assess_branch(self, branch: Branch) -> Optional[BranchStatus]:
        title = issue_title(branch.name)
        log = logger.bind(branch=branch.name)
        try:
            try:
                commit_age = await self.provider.get_commit_age(branch.commit_sha)
            except Exception as exc:
                log.error("Failed to read last commit age; branch skipped", error=str(exc))
                return None

            status = classify_age(commit_age, self.settings.days_before_stale, self.settings.days_before_delete)
            self.report.total_assessed += 1
            matches = self.issues.match(title)
            log.info(
                "Assessing branch",
                commit_age=commit_age,
                status=status.value,
                open_issues=len(matches),
                days_before_stale=self.settings.days_before_stale,
                days_before_delete=self.settings.days_before_delete,
            )

            if status is BranchStatus.ACTIVE:
                for issue in matches:
                    log.info("Branch is active again; closing issue", issue_number=issue.number)
                    await self._close_issue(issue)
                return status

            committer, resolved = await self._committer(branch)
            tag = self.settings.tag_last_committer and resolved

            if not matches:
                await self._open_issue(branch, commit_age, committer, tag)
                return status

            for issue in matches:
                await self._comment(issue, branch, commit_age, committer, tag)
            self.report.mark_stale(branch.name)

            if status is BranchStatus.DELETE:
                await self._expire_branch(branch, matches)
            return status
        finally:
            self.issues.pop(title)

    async def _open_issue(self, branch: Branch, commit_age: int, committer: str, tag: bool) -> ActionResult:
        log = logger.bind(branch=branch.name)
        if self.issue_budget <= 0:
            log.info("Issue budget exhausted; no issue created", commit_age=commit_age)
            return ActionResult.failure("issue budget exhausted")

        # Spent before the call: a create that fails client-side may still land on the host.
        self.issue_budget -= 1
        try:
            number = await self.provider.create_issue(
                branch.name,
                commit_age,
                committer,
                self.settings.days_before_delete,
                self.settings.stale_branch_label,
                tag,
            )
        except Exception as exc:
            log.error("Failed to create issue", error=str(exc), issue_budget=self.issue_budget)
            return ActionResult.failure(str(exc))

        self.report.issues_created += 1
        self.report.mark_stale(branch.name)
        log.info("Issue created", issue_number=number, issue_budget=self.issue_budget)
        return ActionResult.success(state="open", issue_number=number)

    async def _comment(
        self, issue: TrackingIssue, branch: Branch, commit_age: int, committer: str, tag: bool
    ) -> ActionResult:
        try:
            await self.provider.comment_on_issue(
                issue.number,
                branch.name,
                commit_age,
                committer,
                self.settings.comment_updates,
                self.settings.days_before_delete,
                self.settings.stale_branch_label,
                tag,
            )
        except Exception as exc:
            logger.error("Failed to update issue", branch=branch.name, issue_number=issue.number, error=str(exc))
            return ActionResult.failure(str(exc), issue_number=issue.number)
        logger.info(
            "Issue updated",
            branch=branch.name,
            issue_number=issue.number,
            comment_mode=self.settings.comment_updates.value,
        )
        return ActionResult.success(state="open", issue_number=issue.number)

    async def _close_issue(self, issue: TrackingIssue) -> ActionResult:
        try:
            state = await self.provider.close_issue(issue.number)
        except Exception as exc:
            logger.error("Failed to close issue", issue_number=issue.number, title=issue.title, error=str(exc))
            return ActionResult.failure(str(exc), issue_number=issue.number)
        self.report.issues_closed += 1
        logger.info("Issue closed", issue_number=issue.number, state=state)
        return ActionResult.success(state=state, issue_number=issue.number)

    async def _expire_branch(self, branch: Branch, matches: List[TrackingIssue]) -> ActionResult:
        log = logger.bind(branch=branch.name)
        comparison = await self._compare(branch)
        if comparison.save:
            log.info("Branch is past its grace period but preserved", reason=comparison.reason)
            return ActionResult.failure(f"preserved: {comparison.reason}")

        try:
            await self.provider.delete_branch(branch.name)
        except Exception as exc:
            log.error("Failed to delete branch", error=str(exc))
            return ActionResult.failure(str(exc))

        log.info("Branch deleted")
        for issue in matches:
            await self._close_issue(issue)
        self.report.mark_deleted(branch.name)
        return ActionResult.success(state="deleted")

    # --- after the walk ---
    async def close_orphans(self) -> int:
        """Close issues whose branch no longer exists. Returns how many closed."""
        orphans = self.issues.remaining()
        if not orphans:
            return 0
        logger.info("Closing orphaned issues", count=len(orphans))
        closed = 0
        for issue in orphans:
            await self.check_rate_limit()
            result = await self._close_issue(issue)
            if result.ok:
                closed += 1
                self.report.orphans_closed += 1
        return closed
