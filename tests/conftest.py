import os
import sys
import pytest
import tempfile
import subprocess
from pathlib import Path

from savefile.naming import NamingContext, backup_path
from savefile.operations import SaveOperations


PROJECT_ROOT = Path(__file__).resolve().parent.parent

TEST_TIMESTAMP = "20240102030405"
TEST_USER = "Test User"


# ---- Individual fixtures for flexible test composition ----

@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def context():
    """A fixed naming context so backup names are predictable."""
    return NamingContext(TEST_TIMESTAMP, TEST_USER)


@pytest.fixture
def ops(context):
    """SaveOperations bound to the fixed naming context."""
    return SaveOperations(context)


# ---- Base test class for inheritance-based testing ----

class TestBase:
    """Base class for savefile tests providing an isolated working tree."""

    def setUp(self):
        """
        Set up the test environment.

        This method:
        1. Creates a temporary directory
        2. Creates a source tree inside it (proj/a.txt, proj/sub/b.log)
        3. Builds SaveOperations with a fixed naming context
        """
        self.temp_dir = tempfile.TemporaryDirectory()
        self.working_dir = Path(self.temp_dir.name)

        self.source_dir = self.working_dir / "proj"
        self._create_test_files()

        self.context = NamingContext(TEST_TIMESTAMP, TEST_USER)
        self.ops = SaveOperations(self.context)

    def tearDown(self):
        """Clean up after the test."""
        self._safe_cleanup()

    @pytest.fixture(autouse=True)
    def _setup_teardown_fixture(self):
        """
        Pytest fixture to automatically call setUp and tearDown.

        This fixture is automatically used by all test methods in classes
        that inherit from TestBase.
        """
        self.setUp()
        yield
        self.tearDown()

    def _create_test_files(self):
        """Create the source tree."""
        os.makedirs(self.source_dir / "sub")
        (self.source_dir / "a.txt").write_text("hello")
        (self.source_dir / "sub" / "b.log").write_text("world")

        # A binary file
        with open(self.source_dir / "binary.bin", "wb") as f:
            f.write(os.urandom(1024))  # 1KB of random data

    def _safe_cleanup(self):
        """
        Clean up the working tree, restoring write permission first so
        read-only entries created by a test can be removed.
        """
        for root, dirs, _ in os.walk(self.working_dir):
            for name in dirs:
                try:
                    os.chmod(os.path.join(root, name), 0o755)
                except OSError:
                    pass
        try:
            self.temp_dir.cleanup()
        except (PermissionError, OSError) as e:
            print(f"Warning: Could not clean up temporary directory: {e}")

    def expected_target(self, path):
        """Backup path of a source path under the fixed context."""
        return Path(backup_path(str(path), self.context))

    def run_cli(self, args, cwd=None):
        """
        Run python -m savefile in a subprocess.

        Args:
            args: List of command arguments

        Returns:
            subprocess.CompletedProcess with text stdout and stderr
        """
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(PROJECT_ROOT), env.get("PYTHONPATH")]))
        cmd = [sys.executable, "-m", "savefile"] + [str(a) for a in args]
        return subprocess.run(cmd, capture_output=True, text=True, cwd=cwd or self.working_dir, env=env)


# ---- Helper functions for both approaches ----

def relative_paths(root):
    """Set of every path below root, relative to root."""
    paths = set()
    for current, dirs, files in os.walk(root):
        for name in dirs + files:
            paths.add(str((Path(current) / name).relative_to(root)))
    return paths


def backups_in(directory):
    """Entries of directory whose name marks them as backups."""
    return sorted(p for p in Path(directory).iterdir() if ".bak_" in p.name)
