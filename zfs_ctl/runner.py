import logging
import shlex
import subprocess
from typing import BinaryIO, List, Optional

from .const import SUDO_BIN
from .errors import ZfsError
from .transport import LocalTransport, Process, Transport

logger = logging.getLogger(__name__)


class Command:
    """
    A single command bound to a transport.

    Use output() to run it to completion, or start() followed by the stdin /
    stdout streams and wait() when the output has to be streamed.
    """

    def __init__(self, transport: Transport, argv: List[str]) -> None:
        self._transport = transport
        self.args = argv
        self._process: Optional[Process] = None

    def __repr__(self) -> str:
        return f"Command({shlex.join(self.args)!r})"

    def output(self) -> subprocess.CompletedProcess:
        """Runs the command and returns the captured stdout/stderr bytes and exit code."""
        logger.debug("Executing: %s", shlex.join(self.args))
        result = self._transport.run(self.args)
        if result.returncode != 0:
            logger.warning("Command '%s' failed with exit code %s.",
                           shlex.join(self.args), result.returncode)
        return result

    def start(self) -> None:
        if self._process is not None:
            raise ZfsError(f"Command '{shlex.join(self.args)}' already started.")
        logger.debug("Starting: %s", shlex.join(self.args))
        self._process = self._transport.spawn(self.args)

    def _started(self) -> Process:
        if self._process is None:
            raise ZfsError(f"Command '{shlex.join(self.args)}' not started.")
        return self._process

    @property
    def stdin(self) -> BinaryIO:
        return self._started().stdin

    @property
    def stdout(self) -> BinaryIO:
        return self._started().stdout

    def close_stdin(self) -> None:
        self._started().close_stdin()

    def wait(self, timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """
        Waits for a started command to exit.

        Stdout is left to the caller; the returned CompletedProcess carries
        only stderr and the exit code.
        """
        process = self._started()
        returncode = process.wait(timeout=timeout)
        stderr = process.stderr.read()
        if returncode != 0:
            logger.warning("Command '%s' failed with exit code %s.",
                           shlex.join(self.args), returncode)
        return subprocess.CompletedProcess(
            args=self.args,
            returncode=returncode,
            stdout=None,
            stderr=stderr
        )

    def kill(self) -> None:
        if self._process is not None:
            self._process.kill()

    def close(self) -> None:
        """Closes the pipes of a started command; call after wait() or kill()."""
        if self._process is not None:
            self._process.close()


class Runner:
    """Builds commands for one transport, wrapping them in sudo when asked to."""

    def __init__(self, transport: Optional[Transport] = None, sudo: bool = False) -> None:
        self.transport = transport if transport is not None else LocalTransport()
        self.sudo = sudo

    def command(self, name: str, *args: str) -> Command:
        argv = [name, *args]
        if self.sudo:
            argv = [SUDO_BIN, *argv]
        return Command(self.transport, argv)

    def __repr__(self) -> str:
        return f"Runner({self.transport!r}, sudo={self.sudo})"
