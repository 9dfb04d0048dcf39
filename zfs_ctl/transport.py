import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from typing import BinaryIO, List, Optional

import paramiko

from .const import SSH_CONNECT_TIMEOUT, SSH_PORT
from .errors import CommandNotFoundError, CommandTimeoutError, TransportError

logger = logging.getLogger(__name__)


class Process(ABC):
    """A spawned command with binary stdin/stdout/stderr streams."""

    args: List[str]
    stdin: BinaryIO
    stdout: BinaryIO
    stderr: BinaryIO

    @abstractmethod
    def close_stdin(self) -> None:
        """Signals end of input to the process."""

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> int:
        """Blocks until the process exits and returns its exit code."""

    @abstractmethod
    def kill(self) -> None:
        """Terminates the process if it is still running and reaps it."""

    @abstractmethod
    def close(self) -> None:
        """Releases the streams of a finished or killed process."""


class Transport(ABC):
    """Knows how to run an argv somewhere, locally or on another host."""

    def close(self) -> None:
        pass

    @abstractmethod
    def run(self, argv: List[str]) -> subprocess.CompletedProcess:
        """Runs argv to completion capturing stdout and stderr as bytes."""

    @abstractmethod
    def spawn(self, argv: List[str]) -> Process:
        """Starts argv with all three standard streams piped."""


class LocalProcess(Process):
    def __init__(self, popen: subprocess.Popen) -> None:
        self._popen = popen
        self.args = list(popen.args)
        self.stdin = popen.stdin
        self.stdout = popen.stdout
        self.stderr = popen.stderr

    def close_stdin(self) -> None:
        if not self.stdin.closed:
            self.stdin.close()

    def wait(self, timeout: Optional[float] = None) -> int:
        try:
            return self._popen.wait(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(
                f"Command '{shlex.join(self.args)}' timed out after {timeout} seconds.") from e

    def kill(self) -> None:
        if self._popen.poll() is None:
            self._popen.kill()
            self._popen.wait()

    def close(self) -> None:
        for stream in (self.stdin, self.stdout, self.stderr):
            try:
                stream.close()
            except OSError as e:
                # Flushing stdin into a dead process.
                logger.debug("Closing pipe of %s: %s", shlex.join(self.args), e)


class LocalTransport(Transport):
    """Runs commands as child processes of this interpreter."""

    def run(self, argv: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                argv,
                capture_output=True,
                check=False,
                shell=False
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(f"Command not found: {e.filename}") from e
        except PermissionError as e:
            raise CommandNotFoundError(f"Command not executable: {e.filename}") from e

    def spawn(self, argv: List[str]) -> Process:
        try:
            popen = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(f"Command not found: {e.filename}") from e
        except PermissionError as e:
            raise CommandNotFoundError(f"Command not executable: {e.filename}") from e
        return LocalProcess(popen)

    def __repr__(self) -> str:
        return "LocalTransport()"


class SshProcess(Process):
    def __init__(self, argv: List[str], channel: paramiko.Channel) -> None:
        self.args = list(argv)
        self._channel = channel
        self.stdin = channel.makefile_stdin("wb")
        self.stdout = channel.makefile("rb")
        self.stderr = channel.makefile_stderr("rb")

    def close_stdin(self) -> None:
        if not self.stdin.closed:
            self.stdin.close()
        self._channel.shutdown_write()

    def wait(self, timeout: Optional[float] = None) -> int:
        if not self._channel.status_event.wait(timeout):
            raise CommandTimeoutError(
                f"Command '{shlex.join(self.args)}' timed out after {timeout} seconds.")
        return self._channel.recv_exit_status()

    def kill(self) -> None:
        # The remote side sees the session drop; wait() then returns at once.
        self._channel.close()

    def close(self) -> None:
        for stream in (self.stdin, self.stdout, self.stderr):
            try:
                stream.close()
            except (OSError, paramiko.SSHException) as e:
                logger.debug("Closing stream of %s: %s", shlex.join(self.args), e)
        self._channel.close()


class SshTransport(Transport):
    """
    Runs commands on a remote host over SSH.

    The connection is opened lazily on the first command and kept until
    close() is called. An already connected paramiko.SSHClient may be passed
    in instead of connection parameters.
    """

    def __init__(
        self,
        host: str,
        port: int = SSH_PORT,
        username: Optional[str] = None,
        password: Optional[str] = None,
        key_filename: Optional[str] = None,
        client: Optional[paramiko.SSHClient] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.key_filename = key_filename
        self._client = client

    def _connect(self) -> paramiko.SSHClient:
        if self._client is not None:
            return self._client
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self._password,
                key_filename=self.key_filename,
                timeout=SSH_CONNECT_TIMEOUT,
            )
        except paramiko.AuthenticationException as e:
            raise TransportError(f"SSH authentication failed for {self.host}") from e
        except (paramiko.SSHException, OSError) as e:
            raise TransportError(f"SSH connection to {self.host}:{self.port} failed: {e}") from e
        logger.info("Connected to %s:%s", self.host, self.port)
        self._client = client
        return client

    def _open_channel(self, argv: List[str]) -> paramiko.Channel:
        command = shlex.join(argv)
        try:
            channel = self._connect().get_transport().open_session()
            channel.exec_command(command)
        except paramiko.SSHException as e:
            raise TransportError(f"Cannot run '{command}' on {self.host}: {e}") from e
        return channel

    def run(self, argv: List[str]) -> subprocess.CompletedProcess:
        channel = self._open_channel(argv)
        with channel:
            stdout = channel.makefile("rb").read()
            stderr = channel.makefile_stderr("rb").read()
            returncode = channel.recv_exit_status()
        return subprocess.CompletedProcess(
            args=argv,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr
        )

    def spawn(self, argv: List[str]) -> Process:
        return SshProcess(argv, self._open_channel(argv))

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "SshTransport":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SshTransport({self.host!r}, port={self.port})"
