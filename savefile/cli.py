import sys
import os
import logging
from typing import List, Optional, NoReturn

from .errors import SaveFileError
from .naming import NamingContext
from .operations import SaveOperations

PROG_NAME = "savefile"
LOG_LEVEL = logging.INFO
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger('savefile')


def configure_logging(level: int = LOG_LEVEL) -> None:
    """
    Send log records to standard error.

    Args:
        level (int, optional): Minimum level to emit. Defaults to INFO.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def abort_run(reason: str, exit_code: int = 1) -> NoReturn:
    """
    Record why the run stops and exit the program with the specified exit code.

    The failure itself is logged where it is raised; this only adds the
    decision to stop.

    Args:
        reason (str): Why the remaining paths are not processed
        exit_code (int, optional): The exit code to use. Defaults to 1.
    """
    logger.info(f"Aborting run: {reason}")
    sys.exit(exit_code)


def prog_name() -> str:
    """Name to show in the usage line, as the program was invoked."""
    prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else PROG_NAME
    if prog in ("__main__.py", "-c"):
        prog = PROG_NAME
    return prog


def print_usage() -> None:
    print(f"usage: {prog_name()} path [path ...]", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the savefile command line interface.

    Every argument is a path, including ones that start with a dash. Every
    path is backed up in turn. The first fatal error stops the whole run
    with exit status 1.

    Args:
        argv (List[str], optional): Arguments without the program name. Defaults to sys.argv[1:].

    Returns:
        int: 0 once every path has been backed up
    """
    paths = list(sys.argv[1:] if argv is None else argv)
    if not paths:
        print_usage()
        sys.exit(1)

    configure_logging()
    logger.info(f"Starting paths={paths}")

    try:
        context = NamingContext.capture()
    except SaveFileError:
        abort_run("cannot start backup")

    ops = SaveOperations(context)
    for path in paths:
        try:
            ops.save(path)
        except SaveFileError:
            abort_run(f"backup of '{path}' failed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
