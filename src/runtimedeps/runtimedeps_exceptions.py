"""
This module contains the exceptions raised by the runtimedeps acquisition pipeline.
"""


class RuntimeDepsException(Exception):
    """
    Base class for all exceptions raised by runtimedeps
    """

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class ResolveFailure(RuntimeDepsException):
    """
    Raised when no repository yields a usable location or metadata document for an artifact
    """


class DownloadFailure(RuntimeDepsException):
    """
    Raised when a resolved location cannot be fetched into the working directory
    """


class RelocationFailure(RuntimeDepsException):
    """
    Raised when the rewrite engine cannot be bootstrapped, or a rewrite fails
    """


class LoadFailure(RuntimeDepsException):
    """
    Raised when a local artifact cannot be registered with a namespace loader
    """
