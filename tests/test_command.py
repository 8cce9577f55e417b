"""Tests for command execution and failure classification."""

import sys

from repo_sync.git.command import CommandResult, CommandRunner, ErrorKind, classify_failure


class TestClassifyFailure:
    """Test classification of failed git commands."""

    def test_pathspec_not_found(self):
        """Test that a pathspec error extracts the reference name."""
        result = CommandResult(
            args=['git', 'checkout', 'foo'],
            exit_code=1,
            stderr="error: pathspec 'foo' did not match any file(s) known to git\n",
        )

        failure = classify_failure(result)

        assert failure.kind == ErrorKind.REFERENCE_NOT_FOUND
        assert failure.reference == 'foo'
        assert failure.exit_code == 1

    def test_needed_single_revision(self):
        """Test that rev-parse failures are recognized."""
        result = CommandResult(
            args=['git', 'rev-parse', '--verify', 'master'],
            exit_code=128,
            stderr='fatal: Needed a single revision\n',
        )

        assert classify_failure(result).kind == ErrorKind.NEEDED_SINGLE_REVISION

    def test_other_failure_keeps_stderr(self):
        """Test that unknown failures keep the full stderr."""
        result = CommandResult(
            args=['git', 'fetch'],
            exit_code=128,
            stderr="fatal: repository 'x' does not exist\n",
        )

        failure = classify_failure(result)

        assert failure.kind == ErrorKind.OTHER
        assert failure.stderr == "fatal: repository 'x' does not exist\n"
        assert failure.args == ['git', 'fetch']

    def test_timeout(self):
        """Test that timed out commands are classified as timeouts."""
        result = CommandResult(args=['git', 'fetch'], exit_code=None, timed_out=True)

        assert classify_failure(result).kind == ErrorKind.TIMEOUT

    def test_execution_error(self):
        """Test that commands that could not start are execution errors."""
        result = CommandResult(args=['nope'], exit_code=None, stderr='No such file')

        assert classify_failure(result).kind == ErrorKind.EXECUTION_ERROR


class TestCommandRunner:
    """Test running real subprocesses."""

    def setup_method(self):
        """Set up test fixtures."""
        self.runner = CommandRunner()

    def test_success(self, tmp_path):
        """Test capturing stdout of a successful command."""
        result = self.runner.run(
            sys.executable, ['-c', 'import os; print(os.getcwd())'], tmp_path
        )

        assert result.success
        assert result.exit_code == 0
        assert result.stdout.strip() == str(tmp_path.resolve())

    def test_non_zero_exit_is_returned(self, tmp_path):
        """Test that a non-zero exit is reported, not raised."""
        result = self.runner.run(
            sys.executable,
            ['-c', 'import sys; sys.stderr.write("boom"); sys.exit(3)'],
            tmp_path,
        )

        assert not result.success
        assert result.exit_code == 3
        assert result.stderr == 'boom'

    def test_extra_environment(self, tmp_path):
        """Test that extra environment variables reach the command."""
        result = self.runner.run(
            sys.executable,
            ['-c', 'import os; print(os.environ["REPO_SYNC_TEST"])'],
            tmp_path,
            env={'REPO_SYNC_TEST': 'value'},
        )

        assert result.stdout.strip() == 'value'

    def test_missing_executable(self, tmp_path):
        """Test that a missing executable is reported as a failed result."""
        result = self.runner.run('repo-sync-no-such-binary', ['--version'], tmp_path)

        assert not result.success
        assert result.exit_code is None
        assert classify_failure(result).kind == ErrorKind.EXECUTION_ERROR

    def test_timeout_kills_command(self, tmp_path):
        """Test that a hung command is killed after the timeout."""
        runner = CommandRunner(timeout=0.5)

        result = runner.run(sys.executable, ['-c', 'import time; time.sleep(30)'], tmp_path)

        assert result.timed_out
        assert not result.success
        assert result.timeout == 0.5
