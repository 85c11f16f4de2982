"""
Runtime dependency resolution.

This package turns coordinate artifacts into download URLs, for both fixed
versions and floating (snapshot) versions.
"""

from .resolver import FixedVersionResolver, FloatingVersionResolver, RepositoryResolver

__all__ = ["FixedVersionResolver", "FloatingVersionResolver", "RepositoryResolver"]
