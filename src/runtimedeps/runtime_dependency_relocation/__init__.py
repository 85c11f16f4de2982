"""
Runtime dependency relocation.

This package moves the modules of downloaded archives under a private prefix,
using a rewrite engine that is itself acquired at run time.
"""

from .engine import ArchiveRelocator, ModuleRemapper, SourceRewriter
from .relocator import DependencyRelocator

__all__ = ["ArchiveRelocator", "DependencyRelocator", "ModuleRemapper", "SourceRewriter"]
