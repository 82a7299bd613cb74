"""Run configuration.

Values come from the environment (a ``.env`` file is honoured) and can be
overridden by command-line flags. Everything the engine needs is carried on
one ``Settings`` object handed to it at construction.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .models import CommentMode, CompareMode, ReportFormat
from .utils.errors import ConfigurationError

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_LABEL = "stale branch 🗑️"
DEFAULT_COMMITTER = "Unknown"
DEFAULT_RATE_LIMIT_THRESHOLD = 95.0

# Field name -> environment variables, first match wins.
ENV_VARS: Dict[str, Tuple[str, ...]] = {
    "github_token": ("SB_GITHUB_TOKEN", "GITHUB_TOKEN"),
    "repository": ("SB_REPOSITORY", "GITHUB_REPOSITORY"),
    "api_base_url": ("SB_API_BASE_URL", "GITHUB_API_URL"),
    "days_before_stale": ("SB_DAYS_BEFORE_STALE",),
    "days_before_delete": ("SB_DAYS_BEFORE_DELETE",),
    "max_issues": ("SB_MAX_ISSUES",),
    "stale_branch_label": ("SB_STALE_BRANCH_LABEL",),
    "tag_last_committer": ("SB_TAG_LAST_COMMITTER",),
    "comment_updates": ("SB_COMMENT_UPDATES",),
    "compare_branches": ("SB_COMPARE_BRANCHES",),
    "compare_mode": ("SB_COMPARE_MODE",),
    "rate_limit_threshold": ("SB_RATE_LIMIT_THRESHOLD",),
    "default_committer": ("SB_DEFAULT_COMMITTER",),
    "report_path": ("SB_REPORT_PATH",),
    "report_format": ("SB_REPORT_FORMAT",),
    "request_timeout": ("SB_GITHUB_TIMEOUT",),
    "log_level": ("SB_LOG_LEVEL",),
}

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


class Settings(BaseModel):
    """Validated configuration for one run."""
    github_token: str = Field(..., min_length=1)
    repository: str = Field(..., description="owner/repo")
    api_base_url: str = DEFAULT_API_BASE
    days_before_stale: int = Field(..., ge=0)
    days_before_delete: int = Field(..., ge=0)
    max_issues: int = Field(20, ge=0)
    stale_branch_label: str = Field(DEFAULT_LABEL, min_length=1)
    tag_last_committer: bool = False
    comment_updates: CommentMode = CommentMode.FULL
    compare_branches: Optional[str] = Field(None, description="Base ref; repository default branch when unset")
    compare_mode: CompareMode = CompareMode.SAVE
    rate_limit_threshold: float = Field(DEFAULT_RATE_LIMIT_THRESHOLD, gt=0, le=100)
    default_committer: str = DEFAULT_COMMITTER
    report_path: Optional[Path] = None
    report_format: ReportFormat = ReportFormat.CSV
    request_timeout: float = Field(15.0, gt=0)
    log_level: str = "INFO"

    @field_validator("repository")
    @classmethod
    def _check_repository(cls, value: str) -> str:
        owner, _, repo = value.strip().partition("/")
        if not owner or not repo or "/" in repo:
            raise ValueError("repository must look like 'owner/repo'")
        return f"{owner}/{repo}"

    @field_validator("comment_updates", mode="before")
    @classmethod
    def _comment_mode_from_bool(cls, value: Any) -> Any:
        # The workflow input used to be a plain boolean.
        if isinstance(value, bool):
            return CommentMode.FULL if value else CommentMode.OFF
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return CommentMode.FULL
            if lowered in _FALSE:
                return CommentMode.OFF
            return lowered
        return value

    @field_validator("compare_mode", "report_format", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("compare_branches", "report_path", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if self.days_before_delete <= self.days_before_stale:
            raise ValueError("days_before_delete must be greater than days_before_stale")
        return self

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[1]


def _from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for field, names in ENV_VARS.items():
        for name in names:
            raw = env.get(name)
            if raw is not None and raw != "":
                values[field] = raw
                break
    return values


def load_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build ``Settings`` from the environment plus explicit overrides.

    ``overrides`` entries that are ``None`` are ignored so argparse
    namespaces can be passed straight through. Raises ``ConfigurationError``
    when a required value is missing or a value is invalid.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    values = _from_env(env)
    for key, value in (overrides or {}).items():
        if value is not None and key in Settings.model_fields:
            values[key] = value

    try:
        return Settings(**values)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = first.get("msg", "invalid configuration")
        raise ConfigurationError(
            f"Invalid configuration: {field + ': ' if field else ''}{message}",
            field=field,
            details={"errors": [e.get("msg") for e in exc.errors()]},
        ) from exc
