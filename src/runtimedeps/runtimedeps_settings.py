"""
Provides the default settings for runtimedeps
"""

import os
import pathlib

VERSION = "0.3.0"
USER_AGENT = f"runtimedeps/{VERSION}"

MAVEN_CENTRAL = "https://repo1.maven.org/maven2/"


class RuntimeDepsSettings:
    """
    Provides the various settings for runtimedeps
    """

    @staticmethod
    def get_global_cache_directory() -> str:
        global_cache_directory = os.environ.get(
            "RUNTIMEDEPS_HOME", str(pathlib.Path.home() / ".runtimedeps")
        )
        os.makedirs(global_cache_directory, exist_ok=True)
        return global_cache_directory

    @staticmethod
    def get_artifact_directory() -> str:
        """
        Returns the default working directory shared by every run in this process
        """
        artifact_directory = str(
            pathlib.PurePath(RuntimeDepsSettings.get_global_cache_directory(), "artifacts")
        )
        os.makedirs(artifact_directory, exist_ok=True)
        return artifact_directory
