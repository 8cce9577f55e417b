"""Shared test doubles for origins, destinations and git commands."""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Union

import pytest

from repo_sync.git.command import CommandResult
from repo_sync.models.change import Change
from repo_sync.workflow.interfaces import Destination, Origin


class DummyOrigin(Origin):
    """In-memory origin whose references are the change indexes."""

    def __init__(self):
        self.changes: List[Change] = []
        self.trees: Dict[str, Dict[str, str]] = {}

    @property
    def label_name(self) -> str:
        return 'Dummy-RevId'

    def add_change(self, timestamp: Optional[int], files: Dict[str, str], summary: str):
        reference = str(len(self.changes))
        self.changes.append(Change(reference, timestamp, summary))
        self.trees[reference] = dict(files)
        return self

    def add_simple_change(self, timestamp: Optional[int]):
        reference = str(len(self.changes))
        return self.add_change(
            timestamp, {'file.txt': reference}, f'{reference} change\n'
        )

    def head(self) -> str:
        return self.changes[-1].reference

    def resolve(self, ref: str) -> Change:
        return self.changes[int(ref)]

    def changes_between(self, previous_ref: Optional[str], source_ref: str) -> Iterator[Change]:
        start = 0 if previous_ref is None else int(previous_ref) + 1
        for change in self.changes[start : int(source_ref) + 1]:
            yield change

    def materialize(self, change: Change, into: Path) -> None:
        into = Path(into)
        if into.exists():
            shutil.rmtree(into)
        into.mkdir(parents=True)
        for relative, content in self.trees[change.reference].items():
            path = into / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)


@dataclass
class ProcessedChange:
    """A change as received by the destination."""

    origin_ref: str
    summary: str
    timestamp: Optional[int]
    label_name: str
    workdir: Dict[str, str]


class RecordingDestination(Destination):
    """Destination recording every processed change in memory."""

    def __init__(self):
        self.processed: List[ProcessedChange] = []

    def process(self, workdir: Path, change: Change, label_name: str) -> None:
        snapshot = {
            path.relative_to(workdir).as_posix(): path.read_text()
            for path in sorted(Path(workdir).rglob('*'))
            if path.is_file()
        }
        self.processed.append(
            ProcessedChange(
                origin_ref=change.reference,
                summary=change.summary,
                timestamp=change.timestamp,
                label_name=label_name,
                workdir=snapshot,
            )
        )

    def previous_ref(self, label_name: str) -> Optional[str]:
        return self.processed[-1].origin_ref if self.processed else None


Response = Union[CommandResult, Callable[[List[str], Path], CommandResult]]


class FakeCommandRunner:
    """Command runner returning scripted results keyed by git subcommand."""

    def __init__(self):
        self.calls: List[dict] = []
        self.responses: Dict[str, List[Response]] = {}

    def script(self, subcommand: str, *responses: Response) -> None:
        """Queue responses for a subcommand. The last one repeats."""
        self.responses.setdefault(subcommand, []).extend(responses)

    def run(self, executable, args, cwd, env=None) -> CommandResult:
        args = list(args)
        subcommand = next(a for a in args if not a.startswith('-'))
        self.calls.append(
            {'executable': executable, 'args': args, 'cwd': Path(cwd), 'env': env}
        )

        queue = self.responses.get(subcommand)
        if not queue:
            return CommandResult(args=[executable, *args], exit_code=0)
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(response):
            return response(args, Path(cwd))
        return response

    def subcommands(self) -> List[str]:
        return [next(a for a in c['args'] if not a.startswith('-')) for c in self.calls]


def failure(stderr: str, exit_code: int = 128) -> CommandResult:
    return CommandResult(args=['git'], exit_code=exit_code, stderr=stderr)


def success(stdout: str = '') -> CommandResult:
    return CommandResult(args=['git'], exit_code=0, stdout=stdout)


@pytest.fixture
def origin():
    return DummyOrigin()


@pytest.fixture
def destination():
    return RecordingDestination()


@pytest.fixture
def runner():
    return FakeCommandRunner()


@pytest.fixture
def workdir(tmp_path):
    path = tmp_path / 'a' / 'b' / 'c' / 'workdir'
    path.mkdir(parents=True)
    return path
