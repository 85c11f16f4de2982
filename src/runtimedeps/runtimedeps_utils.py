"""
This file contains various utility functions like probing and downloading over HTTP, etc.
"""

import logging
import os
import pathlib
from typing import Optional

import requests

from runtimedeps.runtimedeps_exceptions import DownloadFailure
from runtimedeps.runtimedeps_logger import RuntimeDepsLogger
from runtimedeps.runtimedeps_settings import USER_AGENT

CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"


class HttpClient:
    """
    Thin wrapper over a requests session shared by the resolvers and the downloader.

    Every request identifies runtimedeps through the User-Agent header, follows
    redirects, and is bounded by the configured timeout.
    """

    def __init__(self, timeout: int, logger: RuntimeDepsLogger, session: Optional[requests.Session] = None):
        """
        Args:
            timeout: Connect and read timeout, in milliseconds
            logger: Logger for request tracing
            session: Session to issue requests with; a new one is created when omitted
        """
        self.timeout = timeout / 1000.0
        self.logger = logger
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})

    def exists(self, url: str) -> bool:
        """
        Check whether ``url`` answers a GET with a successful status. The body is not read.

        Transport errors count as "not found".
        """
        try:
            with self.session.get(url, timeout=self.timeout, allow_redirects=True, stream=True) as response:
                found = response.ok
        except requests.RequestException as e:
            self.logger.log(f"Existence check of {url} failed: {e}", logging.DEBUG)
            return False

        self.logger.log(f"Checked {url}: {'found' if found else 'not found'}", logging.DEBUG)
        return found

    def get_bytes(self, url: str) -> Optional[bytes]:
        """
        Fetch the body of ``url``, or None if it cannot be fetched.
        """
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as e:
            self.logger.log(f"Fetch of {url} failed: {e}", logging.DEBUG)
            return None

        if not response.ok:
            self.logger.log(f"Fetch of {url} returned {response.status_code}", logging.DEBUG)
            return None
        return response.content

    def download(self, url: str, target_path: pathlib.Path) -> None:
        """
        Stream ``url`` to ``target_path``.

        The body is written to a sibling ``.part`` file that is renamed onto the target
        once the transfer completes, so an interrupted transfer never leaves a file at
        ``target_path``.

        Raises:
            DownloadFailure: on connection or read errors and non-success statuses
        """
        partial_path = target_path.with_name(target_path.name + PARTIAL_SUFFIX)
        try:
            with self.session.get(url, timeout=self.timeout, allow_redirects=True, stream=True) as response:
                response.raise_for_status()
                with open(partial_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            os.replace(partial_path, target_path)
        except (requests.RequestException, OSError) as e:
            if partial_path.exists():
                partial_path.unlink()
            raise DownloadFailure(f"Failed to download {url}: {e}") from e
