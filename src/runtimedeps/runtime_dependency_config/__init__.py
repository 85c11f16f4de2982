"""
Runtime dependency run planning.

This package handles:
1. Ordering the artifacts of a run by priority
2. Deciding which artifacts the working directory already holds
3. Tracking the download state of every artifact in a run
"""

from .config_manager import DependencyConfigManager, DependencyState, DownloadStatus, RunPlan

__all__ = ["DependencyConfigManager", "DependencyState", "DownloadStatus", "RunPlan"]
