import io
import subprocess
import threading
from typing import Dict, List, Optional, Tuple, Union

from zfs_ctl.errors import CommandTimeoutError
from zfs_ctl.transport import Process, Transport

Output = Union[bytes, str]


def _b(data: Output) -> bytes:
    return data.encode() if isinstance(data, str) else data


class RecordingSink(io.BytesIO):
    """A stdin stand-in that remembers what was written after it is closed."""

    data = b""

    def close(self) -> None:
        if not self.closed:
            self.data = self.getvalue()
        super().close()


class BrokenSink(io.RawIOBase):
    """A stdin whose reader has already gone away."""

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        raise BrokenPipeError(32, "Broken pipe")


class FakeProcess(Process):
    def __init__(self, returncode: int = 0, stdout: Output = b"", stderr: Output = b"",
                 stdin: Optional[io.IOBase] = None, wait_error: Optional[BaseException] = None) -> None:
        self.args: List[str] = []
        self.stdin = stdin if stdin is not None else RecordingSink()
        self.stdout = io.BytesIO(_b(stdout))
        self.stderr = io.BytesIO(_b(stderr))
        self.returncode = returncode
        self.wait_error = wait_error
        self.killed = False
        self.events: List[Tuple[str, Tuple[str, ...]]] = []

    def close_stdin(self) -> None:
        self.stdin.close()

    def wait(self, timeout: Optional[float] = None) -> int:
        self.events.append(("wait", tuple(self.args)))
        if self.wait_error is not None:
            raise self.wait_error
        return self.returncode

    def kill(self) -> None:
        self.killed = True

    def close(self) -> None:
        for stream in (self.stdin, self.stdout, self.stderr):
            stream.close()


class FakeTransport(Transport):
    """
    Records every argv and answers from canned results.

    Commands without a canned result succeed with empty output. When several
    results are queued for one argv they are returned in order and the last
    one repeats.
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.events: List[Tuple[str, Tuple[str, ...]]] = []
        self._results: Dict[Tuple[str, ...], List[subprocess.CompletedProcess]] = {}
        self._processes: Dict[Tuple[str, ...], FakeProcess] = {}

    def respond(self, argv: List[str], returncode: int = 0, stdout: Output = b"", stderr: Output = b"") -> None:
        result = subprocess.CompletedProcess(argv, returncode, _b(stdout), _b(stderr))
        self._results.setdefault(tuple(argv), []).append(result)

    def fail(self, argv: List[str], stderr: Output, returncode: int = 1) -> None:
        self.respond(argv, returncode=returncode, stderr=stderr)

    def expect_spawn(self, argv: List[str], process: FakeProcess) -> FakeProcess:
        self._processes[tuple(argv)] = process
        return process

    def run(self, argv: List[str]) -> subprocess.CompletedProcess:
        self.calls.append(list(argv))
        queued = self._results.get(tuple(argv))
        if not queued:
            return subprocess.CompletedProcess(argv, 0, b"", b"")
        if len(queued) > 1:
            return queued.pop(0)
        return queued[0]

    def spawn(self, argv: List[str]) -> Process:
        self.calls.append(list(argv))
        self.events.append(("spawn", tuple(argv)))
        process = self._processes.pop(tuple(argv), None) or FakeProcess()
        process.args = list(argv)
        process.events = self.events
        return process


class StalledProcess(FakeProcess):
    """
    Behaves like a sender on the far side of an SSH channel: closing its
    stdout does not stop it, it only exits once killed.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._stopped = threading.Event()

    def wait(self, timeout: Optional[float] = None) -> int:
        self.events.append(("wait", tuple(self.args)))
        if not self._stopped.wait(timeout if timeout is not None else 5):
            raise CommandTimeoutError(f"{self.args} still running")
        return -1

    def kill(self) -> None:
        super().kill()
        self._stopped.set()
