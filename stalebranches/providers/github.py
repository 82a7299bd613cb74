"""
GitHub REST implementation of the branch host.
"""

import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core import messages
from ..models import (
    Branch, BranchComparison, CommentMode, CompareMode, RateLimitStatus, TrackingIssue
)
from ..utils.errors import (
    ProviderConnectionError, ProviderError, ProviderTimeoutError, handle_provider_error
)
from ..utils.time import days_between, now_millis
from .base import BranchHost

logger = structlog.get_logger(__name__)

# Note: no GitHub SDK; plain HTTP via httpx.


class GitHubProvider(BranchHost):
    """GitHub API access for one repository."""

    name = "github"
    API_BASE = os.getenv("SB_API_BASE_URL", "https://api.github.com")
    USER_AGENT = os.getenv("SB_GITHUB_USER_AGENT", "stale-branches/1.0")
    TIMEOUT = float(os.getenv("SB_GITHUB_TIMEOUT", "15"))
    PER_PAGE = 100

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        api_base: Optional[str] = None,
        timeout: Optional[float] = None,
        compare_mode: CompareMode = CompareMode.SAVE,
        now: Optional[Callable[[], float]] = None,
    ):
        if not token:
            raise ProviderError("GitHub token is required", provider=self.name)
        self.token = token
        self.owner = owner
        self.repo = repo
        self.api_base = (api_base or self.API_BASE).rstrip("/")
        self.timeout = timeout or self.TIMEOUT
        self.compare_mode = compare_mode
        self._now = now or now_millis
        self._default_branch: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "GitHubProvider":
        return cls(
            token=settings.github_token,
            owner=settings.owner,
            repo=settings.repo,
            api_base=settings.api_base_url,
            timeout=settings.request_timeout,
            compare_mode=settings.compare_mode,
        )

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": self.USER_AGENT,
        }

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json_payload: Dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.api_base}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params,
                    json=json_payload,
                )
        except httpx.HTTPError as exc:
            raise handle_provider_error(self.name, f"{method} {path}", exc) from exc

        if response.status_code == 204:
            return None

        if response.status_code >= 400:
            message = response.text
            try:
                message = response.json().get("message", message)
            except ValueError:
                pass
            if response.headers.get("X-RateLimit-Remaining") == "0":
                reset = response.headers.get("X-RateLimit-Reset")
                message = f"rate limit exceeded (reset={reset})"
            raise ProviderError(
                message=f"GitHub API {response.status_code}: {message}",
                provider=self.name,
                details={"status_code": response.status_code, "url": path, "method": method},
            )

        return response.json() if response.content else None

    @retry(
        retry=retry_if_exception_type((ProviderConnectionError, ProviderTimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        """GET with retry on transport failures. Mutations go through _request directly."""
        return await self._request("GET", path, params=params)

    async def _paginate(self, path: str, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            data = await self._get(path, params={**(params or {}), "per_page": self.PER_PAGE, "page": page})
            if not isinstance(data, list):
                raise ProviderError(
                    message=f"Unexpected response when listing {path}",
                    provider=self.name,
                    details={"page": page},
                )
            items.extend(data)
            if len(data) < self.PER_PAGE:
                return items
            page += 1

    async def default_branch(self) -> str:
        if self._default_branch is None:
            data = await self._get(self._repo_path)
            if not isinstance(data, dict) or not data.get("default_branch"):
                raise ProviderError("Unexpected response from GitHub repo metadata", provider=self.name)
            self._default_branch = data["default_branch"]
        return self._default_branch

    # --- reads ---
    async def list_branches(self) -> List[Branch]:
        data = await self._paginate(f"{self._repo_path}/branches", params={"protected": "false"})
        return [
            Branch(name=item["name"], commit_sha=item.get("commit", {}).get("sha", ""))
            for item in data
        ]

    async def _get_commit(self, sha: str) -> Dict[str, Any]:
        data = await self._get(f"{self._repo_path}/commits/{sha}")
        if not isinstance(data, dict):
            raise ProviderError("Unexpected response from GitHub commit lookup", provider=self.name)
        return data

    async def get_commit_age(self, sha: str) -> int:
        commit = await self._get_commit(sha)
        date = commit.get("commit", {}).get("committer", {}).get("date")
        if not date:
            raise ProviderError(
                "Commit has no committer date", provider=self.name, details={"sha": sha}
            )
        return days_between(self._now(), date)

    async def get_committer_login(self, sha: str) -> str:
        commit = await self._get_commit(sha)
        for role in ("committer", "author"):
            login = (commit.get(role) or {}).get("login")
            # Commits made through the web UI are committed by web-flow.
            if login and login != "web-flow":
                return login
        raise ProviderError("Commit has no linked GitHub user", provider=self.name, details={"sha": sha})

    async def compare_branches(self, branch_name: str, base_ref: str | None) -> BranchComparison:
        if self.compare_mode == CompareMode.OFF:
            return BranchComparison(save=False, reason="comparison disabled")

        base = base_ref or await self.default_branch()
        if branch_name == base:
            return BranchComparison(save=True, ahead_by=0, behind_by=0, reason=f"{branch_name} is the base branch")

        basehead = f"{quote(base, safe='/')}...{quote(branch_name, safe='/')}"
        data = await self._get(f"{self._repo_path}/compare/{basehead}")
        ahead = int(data.get("ahead_by") or 0)
        behind = int(data.get("behind_by") or 0)
        logger.info("Compared branch", branch=branch_name, base=base, ahead_by=ahead, behind_by=behind)

        if self.compare_mode == CompareMode.SAVE and ahead > 0:
            return BranchComparison(
                save=True,
                ahead_by=ahead,
                behind_by=behind,
                reason=f"{ahead} commits ahead of {base}",
            )
        return BranchComparison(save=False, ahead_by=ahead, behind_by=behind)

    async def get_rate_limit(self) -> RateLimitStatus:
        data = await self._get("/rate_limit")
        core = (data or {}).get("resources", {}).get("core") or (data or {}).get("rate") or {}
        limit = int(core.get("limit") or 0)
        remaining = int(core.get("remaining") or 0)
        used = int(core.get("used", limit - remaining) or 0)
        reset = core.get("reset")
        return RateLimitStatus(
            used=round(used / limit * 100, 2) if limit else 0.0,
            limit=limit,
            remaining=remaining,
            reset=datetime.fromtimestamp(int(reset), tz=timezone.utc) if reset else None,
        )

    async def list_issues(self, label: str) -> List[TrackingIssue]:
        data = await self._paginate(
            f"{self._repo_path}/issues",
            params={"state": "open", "labels": label},
        )
        # The issues endpoint also returns pull requests.
        return [
            TrackingIssue(title=item["title"], number=item["number"])
            for item in data
            if "pull_request" not in item
        ]

    # --- mutations ---
    async def create_issue(
        self,
        branch_name: str,
        commit_age: int,
        committer: str,
        days_before_delete: int,
        label: str,
        tag_committer: bool,
    ) -> int:
        payload = {
            "title": messages.issue_title(branch_name),
            "body": messages.issue_body(branch_name, commit_age, committer, days_before_delete, tag_committer),
            "labels": [label],
        }
        data = await self._request("POST", f"{self._repo_path}/issues", json_payload=payload)
        number = (data or {}).get("number")
        if not number:
            raise ProviderError("Issue number missing from create response", provider=self.name)
        return int(number)

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
        body = messages.issue_comment(
            branch_name, commit_age, committer, mode, days_before_delete, label, tag_committer
        )
        if body is None:
            return
        await self._request(
            "POST",
            f"{self._repo_path}/issues/{issue_number}/comments",
            json_payload={"body": body},
        )

    async def close_issue(self, issue_number: int) -> str:
        data = await self._request(
            "PATCH",
            f"{self._repo_path}/issues/{issue_number}",
            json_payload={"state": "closed"},
        )
        state = (data or {}).get("state")
        if not state:
            raise ProviderError(
                "State cannot be empty", provider=self.name, details={"issue_number": issue_number}
            )
        return state

    async def delete_branch(self, branch_name: str) -> None:
        await self._request(
            "DELETE",
            f"{self._repo_path}/git/refs/heads/{quote(branch_name, safe='/')}",
        )
