"""Subprocess execution of the git executable and failure classification."""

import os
import re
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from loguru import logger

REF_NOT_FOUND_PATTERN = re.compile(r"pathspec '(.+)' did not match any file")
SINGLE_REVISION_PATTERN = re.compile(r'Needed a single revision')


class ErrorKind(str, Enum):
    """Classified kind of a failed command."""

    REFERENCE_NOT_FOUND = 'reference_not_found'
    NEEDED_SINGLE_REVISION = 'needed_single_revision'
    TIMEOUT = 'timeout'
    EXECUTION_ERROR = 'execution_error'
    OTHER = 'other'


@dataclass
class CommandResult:
    """Result of running an external command."""

    args: List[str]
    exit_code: Optional[int]
    stdout: str = ''
    stderr: str = ''
    timed_out: bool = False
    timeout: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


@dataclass
class CommandFailure:
    """Structured description of a failed command."""

    kind: ErrorKind
    exit_code: Optional[int]
    stderr: str = ''
    reference: Optional[str] = None
    args: List[str] = field(default_factory=list)


def classify_failure(result: CommandResult) -> CommandFailure:
    """Classify a failed command result.

    Args:
        result: Result of a command that did not succeed

    Returns:
        Command failure with its error kind
    """
    if result.timed_out:
        kind = ErrorKind.TIMEOUT
    elif result.exit_code is None:
        kind = ErrorKind.EXECUTION_ERROR
    else:
        kind = ErrorKind.OTHER

    reference = None
    if kind == ErrorKind.OTHER:
        match = REF_NOT_FOUND_PATTERN.search(result.stderr)
        if match:
            kind = ErrorKind.REFERENCE_NOT_FOUND
            reference = match.group(1)
        elif SINGLE_REVISION_PATTERN.search(result.stderr):
            kind = ErrorKind.NEEDED_SINGLE_REVISION

    return CommandFailure(
        kind=kind,
        exit_code=result.exit_code,
        stderr=result.stderr,
        reference=reference,
        args=list(result.args),
    )


class CommandRunner:
    """Runs external commands synchronously."""

    def __init__(self, timeout: Optional[float] = None, verbose: bool = False):
        """Initialize command runner.

        Args:
            timeout: Seconds before a command is killed, None to wait forever
            verbose: Log command output at INFO instead of DEBUG
        """
        self.timeout = timeout or None
        self.verbose = verbose
        self.logger = logger.bind(component='CommandRunner')

    def run(
        self,
        executable: str,
        args: Sequence[str],
        cwd: Union[str, Path],
        env: Optional[Dict[str, str]] = None,
    ) -> CommandResult:
        """Run a command and capture its output.

        Non-zero exits, timeouts and launch errors are reported in the
        returned result, never raised.

        Args:
            executable: Program to run
            args: Program arguments
            cwd: Working directory
            env: Extra environment variables

        Returns:
            Command result
        """
        cmd = [executable, *args]
        log = self.logger.info if self.verbose else self.logger.debug
        log(f'Running command: {" ".join(cmd)} in {cwd}')

        process_env = None
        if env:
            process_env = dict(os.environ)
            process_env.update(env)

        try:
            completed = subprocess.run(
                cmd,
                cwd=str(cwd),
                env=process_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            self.logger.error(f'Command timed out after {self.timeout} seconds: {cmd}')
            return CommandResult(
                args=cmd,
                exit_code=None,
                stderr=_decode(e.stderr),
                timed_out=True,
                timeout=self.timeout,
            )
        except OSError as e:
            self.logger.error(f'Command execution failed: {e}')
            return CommandResult(args=cmd, exit_code=None, stderr=str(e))

        result = CommandResult(
            args=cmd,
            exit_code=completed.returncode,
            stdout=_decode(completed.stdout),
            stderr=_decode(completed.stderr),
        )

        log(f'Command return code: {result.exit_code}')
        if result.stdout:
            log(f'Command stdout: {result.stdout}')
        if result.stderr:
            log(f'Command stderr: {result.stderr}')

        return result


def _decode(output: Optional[bytes]) -> str:
    return output.decode('utf-8', errors='replace') if output else ''
