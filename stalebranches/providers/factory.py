"""Provider factory.

``get_provider(name, settings)`` returns a ready branch host for the
configured repository. GitHub is the only host for now.
"""
from typing import Optional

from .base import BranchHost
from .github import GitHubProvider


_PROVIDERS = {
    "github": GitHubProvider,
}


def get_provider(name: str, settings) -> Optional[BranchHost]:
    """Return a provider instance for ``name`` or None if unsupported."""
    provider_cls = _PROVIDERS.get(name)
    if provider_cls is None:
        return None
    return provider_cls.from_settings(settings)
