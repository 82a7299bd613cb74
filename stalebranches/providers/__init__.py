"""Branch host implementations.

This file keeps imports light-weight to avoid circular imports during startup.
"""
from . import factory
from .base import BranchHost

__all__ = ["factory", "BranchHost"]
