"""
Savefile - timestamped backup copies of files and directories.

This package copies each given file or directory tree into a sibling entry
whose name embeds the capture time and the user's name, preserving
modification times and permission bits.
"""

__version__ = "0.1.0"

# Export public API
from .errors import SaveFileError, UserLookupError, PathResolutionError, CopyError
from .naming import NamingContext, backup_path, split_extension
from .operations import SaveOperations, SaveReport, MirrorResult

__all__ = [
    "SaveOperations", "SaveReport", "MirrorResult",
    "NamingContext", "backup_path", "split_extension",
    "SaveFileError", "UserLookupError", "PathResolutionError", "CopyError",
]
