import os
import getpass
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

try:
    import pwd
except ImportError:  # no password database on Windows
    pwd = None

from .errors import UserLookupError


logger = logging.getLogger('savefile')

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"
BACKUP_MARKER = ".bak_"
EXTENSION_SEPARATOR = "."


def format_timestamp(moment: datetime) -> str:
    """
    Render a moment as a fixed-width YYYYMMDDHHMMSS string.

    Args:
        moment (datetime): Local wall-clock time

    Returns:
        str: Zero-padded timestamp without separators
    """
    return moment.strftime(TIMESTAMP_FORMAT)


def resolve_user_name() -> str:
    """
    Get the display name of the user running the process.

    The real name from the password database is preferred. When it is empty
    the login name is used instead.

    Returns:
        str: Real name, or login name as a fallback

    Raises:
        UserLookupError: If the current user cannot be identified
    """
    try:
        if pwd is not None:
            entry = pwd.getpwuid(os.getuid())
            real_name = entry.pw_gecos.split(",", 1)[0]
            login_name = entry.pw_name
        else:
            real_name = ""
            login_name = getpass.getuser()
    except (KeyError, OSError) as e:
        logger.error(f"Cannot get current user information: error={e}")
        raise UserLookupError(f"Cannot determine current user: {e}") from e

    if real_name:
        return real_name
    logger.debug("Current user real name unknown, falling back to login name")
    return login_name


@dataclass(frozen=True)
class NamingContext:
    """Timestamp and user name shared by every backup of one run."""

    timestamp: str
    user_name: str

    @classmethod
    def capture(cls, now: Optional[datetime] = None,
                user_name: Optional[str] = None) -> 'NamingContext':
        """
        Capture the naming context for a run.

        Args:
            now (datetime, optional): Moment to stamp backups with. Defaults to the current local time.
            user_name (str, optional): Name to embed. Defaults to the current user's display name.

        Returns:
            NamingContext: Immutable context to hand to SaveOperations

        Raises:
            UserLookupError: If user_name is not given and the current user cannot be identified
        """
        if now is None:
            now = datetime.now()
        if user_name is None:
            user_name = resolve_user_name()
        context = cls(format_timestamp(now), user_name)
        logger.debug(f"Created naming context: timestamp='{context.timestamp}' user='{context.user_name}'")
        return context


def split_extension(name: str) -> Tuple[str, str]:
    """
    Split a base name at its last dot.

    A dot in first position marks a hidden file, not an extension, so
    ".gitignore" has no extension. Unlike os.path.splitext, "..x" splits
    into (".", ".x").

    Args:
        name (str): Base name without any directory part

    Returns:
        Tuple[str, str]: (stem, ext), ext including the dot or empty
    """
    position = name.rfind(EXTENSION_SEPARATOR)
    if position > 0:
        return name[:position], name[position:]
    return name, ""


def backup_path(source_path: str, context: NamingContext) -> str:
    """
    Compute the sibling path that receives the backup of source_path.

    Args:
        source_path (str): Absolute path of the entry to back up
        context (NamingContext): Timestamp and user name of the run

    Returns:
        str: parent/stem.bak_<timestamp>_<user><ext>
    """
    parent, name = os.path.split(source_path)
    stem, ext = split_extension(name)
    backup_name = f"{stem}{BACKUP_MARKER}{context.timestamp}_{context.user_name}{ext}"
    return os.path.join(parent, backup_name)
