"""
Runtime dependency loading.

This package makes downloaded archives importable, ahead of the host's own modules.
"""

from .dependency_loader import DependencyLoader
from .namespace_loader import NamespaceLoader

__all__ = ["DependencyLoader", "NamespaceLoader"]
