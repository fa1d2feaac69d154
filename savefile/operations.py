import os
import stat
import shutil
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import CopyError, PathResolutionError
from .naming import NamingContext, backup_path


# Get logger instance (configuration is handled in cli.py)
logger = logging.getLogger('savefile')

# Permissions requested for new directories, before the umask is applied
DIRECTORY_MODE = 0o777


@dataclass
class MirrorResult:
    """Outcome of copying mtime and mode bits onto one target entry."""

    path: str
    mtime_ok: bool = True
    mode_ok: bool = True
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.mtime_ok and self.mode_ok


@dataclass
class SaveReport:
    """Summary of one top-level backup."""

    source: str
    target: str
    files: int = 0
    directories: int = 0
    degraded: List[MirrorResult] = field(default_factory=list)


class SaveOperations:
    """Copies files and directory trees into timestamped sibling backups."""

    def __init__(self, context: NamingContext):
        """
        Initialize SaveOperations with the naming context of the run.

        Args:
            context (NamingContext): Timestamp and user name embedded in every top-level backup name
        """
        self.context = context
        logger.debug(f"Initialized SaveOperations: timestamp='{context.timestamp}' user='{context.user_name}'")

    def save(self, path: str) -> SaveReport:
        """
        Back up a file or directory tree next to itself.

        Only the top-level entry is renamed; everything below it keeps its name.

        Args:
            path (str): File or directory to back up, absolute or relative

        Returns:
            SaveReport: Counts of created entries and any degraded metadata mirrors

        Raises:
            PathResolutionError: If the path cannot be made absolute
            CopyError: If any entry cannot be read or written
        """
        try:
            source_path = os.path.abspath(path)
        except OSError as e:
            logger.error(f"Cannot convert to absolute path: path='{path}' error={e}")
            raise PathResolutionError(f"Cannot convert '{path}' to an absolute path: {e}", path) from e

        target_path = backup_path(source_path, self.context)
        report = SaveReport(source=source_path, target=target_path)
        self.copy_entry(source_path, target_path, report)

        if report.degraded:
            logger.warning(f"Could not mirror all properties for {len(report.degraded)} entries under '{target_path}'")
        logger.info(f"Saved source='{source_path}' target='{target_path}' files={report.files} directories={report.directories}")
        return report

    def copy_entry(self, source_path: str, target_path: str,
                   report: Optional[SaveReport] = None) -> SaveReport:
        """
        Copy one entry, recursing into directories.

        Symbolic links are followed: a link to a file is copied as a regular
        file and a link to a directory as a directory.

        Args:
            source_path (str): Entry to copy
            target_path (str): Path to create; its parent must already exist
            report (SaveReport, optional): Report to accumulate into. A new one is created if omitted.

        Returns:
            SaveReport: The accumulated report

        Raises:
            CopyError: If the source cannot be read or the target cannot be written
        """
        if report is None:
            report = SaveReport(source=source_path, target=target_path)

        logger.debug(f"Processing source='{source_path}' target='{target_path}'")
        try:
            source_stat = os.stat(source_path)
        except OSError as e:
            raise self._fail("Cannot get file info", source_path, e) from e

        if stat.S_ISDIR(source_stat.st_mode):
            self._copy_directory(source_path, source_stat, target_path, report)
        else:
            self._copy_file(source_path, source_stat, target_path, report)
        return report

    def mirror_metadata(self, path: str, source_stat: os.stat_result) -> MirrorResult:
        """
        Give path the modification time and permission bits of a source entry.

        The access time of path is left as it is. Failures are logged and
        reported in the result, never raised.

        Args:
            path (str): Target entry to update
            source_stat (os.stat_result): Metadata of the source entry

        Returns:
            MirrorResult: Which of mtime and mode were applied
        """
        logger.info(f"Setting properties path='{path}'")
        result = MirrorResult(path)

        try:
            atime_ns = os.stat(path).st_atime_ns
            os.utime(path, ns=(atime_ns, source_stat.st_mtime_ns))
        except OSError as e:
            result.mtime_ok = False
            result.errors.append(f"mtime: {e}")
            logger.error(f"Cannot set time: path='{path}' mtime_ns={source_stat.st_mtime_ns} error={e}")

        mode = stat.S_IMODE(source_stat.st_mode)
        try:
            os.chmod(path, mode)
        except OSError as e:
            result.mode_ok = False
            result.errors.append(f"mode: {e}")
            logger.error(f"Cannot set mode: path='{path}' mode={mode:o} error={e}")

        return result

    def _copy_directory(self, source_path: str, source_stat: os.stat_result,
                        target_path: str, report: SaveReport) -> None:
        try:
            children = sorted(os.listdir(source_path))
        except OSError as e:
            raise self._fail("Cannot get directory content", source_path, e) from e

        logger.info(f"Creating directory target='{target_path}' source='{source_path}'")
        try:
            os.mkdir(target_path, DIRECTORY_MODE)
        except FileExistsError as e:
            if not os.path.isdir(target_path):
                raise self._fail("Cannot create directory", target_path, e) from e
            logger.debug(f"Reusing existing directory: path='{target_path}'")
        except OSError as e:
            raise self._fail("Cannot create directory", target_path, e) from e
        report.directories += 1

        for name in children:
            self.copy_entry(os.path.join(source_path, name), os.path.join(target_path, name), report)

        # Only once every child is written, so the copies don't bump the mtime
        self._record(self.mirror_metadata(target_path, source_stat), report)

    def _copy_file(self, source_path: str, source_stat: os.stat_result,
                   target_path: str, report: SaveReport) -> None:
        try:
            source_file = open(source_path, 'rb')
        except OSError as e:
            raise self._fail("Cannot open for reading", source_path, e) from e

        with source_file:
            logger.info(f"Creating file target='{target_path}' source='{source_path}'")
            try:
                with open(target_path, 'wb') as target_file:
                    shutil.copyfileobj(source_file, target_file)
            except OSError as e:
                raise self._fail("Cannot write file", target_path, e) from e
        report.files += 1

        self._record(self.mirror_metadata(target_path, source_stat), report)

    @staticmethod
    def _record(result: MirrorResult, report: SaveReport) -> None:
        if not result.ok:
            report.degraded.append(result)

    @staticmethod
    def _fail(message: str, path: str, error: OSError) -> CopyError:
        logger.error(f"{message}: path='{path}' error={error}")
        return CopyError(f"{message} '{path}': {error}", path)
