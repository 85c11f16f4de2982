"""
Runtime dependency downloader.

This package handles:
1. Locating artifacts, through the resolvers or their direct URL
2. Downloading them into the working directory
3. Rejecting incomplete downloads
4. Updating dependency states
"""

from .downloader import DependencyDownloader

__all__ = ["DependencyDownloader"]
