"""
stale-branches - track stale branches with issues and delete them after a grace period.
"""

__version__ = "1.0.0"
__description__ = "Stale branch tracking and cleanup for GitHub repositories"

__all__ = ["__version__"]
