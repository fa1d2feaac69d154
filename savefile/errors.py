"""
Exceptions raised by savefile.

Every fatal condition of a run is a SaveFileError. The engine raises them and
the command-line driver decides the exit status.
"""

from typing import Optional


class SaveFileError(RuntimeError):
    """Base class for unrecoverable backup failures."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class UserLookupError(SaveFileError):
    """The identity of the current user could not be determined."""


class PathResolutionError(SaveFileError):
    """A source path could not be made absolute."""


class CopyError(SaveFileError):
    """A source entry could not be read or its target could not be written."""
