import logging
from typing import List, Optional

from .classifier import classify
from .config import ZfsConfig
from .const import COPY_CHUNK_SIZE, SSH_PORT, ZFS_BIN
from .errors import AlreadyExistsError, NotFoundError
from .filesystem import Filesystem
from .runner import Command, Runner
from .snapshot import Snapshot
from .transport import SshTransport

logger = logging.getLogger(__name__)


class Zfs:
    """
    Entry point: a zfs binary reachable through one Runner.

    Entities built here keep a reference to this client and issue all their
    commands through it.
    """

    def __init__(
        self,
        runner: Optional[Runner] = None,
        binary: str = ZFS_BIN,
        chunk_size: int = COPY_CHUNK_SIZE,
    ) -> None:
        self.runner = runner if runner is not None else Runner()
        self.binary = binary
        self.chunk_size = chunk_size

    def __repr__(self) -> str:
        return f"Zfs({self.runner!r})"

    def close(self) -> None:
        """Closes the underlying transport, e.g. the SSH connection of a remote client."""
        self.runner.transport.close()

    def __enter__(self) -> "Zfs":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @classmethod
    def local(cls, sudo: bool = False) -> "Zfs":
        """A client for the zfs binary on this machine."""
        return cls(Runner(sudo=sudo))

    @classmethod
    def remote(
        cls,
        host: str,
        port: int = SSH_PORT,
        username: Optional[str] = None,
        password: Optional[str] = None,
        key_filename: Optional[str] = None,
        sudo: bool = False,
    ) -> "Zfs":
        """A client for the zfs binary on another host, reached over SSH."""
        transport = SshTransport(host, port=port, username=username,
                                 password=password, key_filename=key_filename)
        return cls(Runner(transport, sudo=sudo))

    @classmethod
    def from_config(cls, config: ZfsConfig) -> "Zfs":
        if config.host:
            transport = SshTransport(
                config.host,
                port=config.port,
                username=config.username,
                password=config.password,
                key_filename=config.key_filename,
            )
            return cls(Runner(transport, sudo=config.sudo), binary=config.zfs_binary,
                       chunk_size=config.chunk_size)
        return cls(Runner(sudo=config.sudo), binary=config.zfs_binary,
                   chunk_size=config.chunk_size)

    def command(self, *args: str) -> Command:
        return self.runner.command(self.binary, *args)

    def run(self, *args: str) -> str:
        """Runs a zfs subcommand and returns its stdout, raising the classified error on failure."""
        result = self.command(*args).output()
        error = classify(result.returncode, result.stderr)
        if error is not None:
            raise error
        return result.stdout.decode("utf-8", errors="replace")

    def new_fs(self, path: str) -> Filesystem:
        """Wraps a path without checking or creating anything."""
        return Filesystem(self, path)

    def new_snapshot(self, path: str) -> Snapshot:
        return Snapshot(self, path)

    def create_fs(self, path: str) -> Filesystem:
        """Creates a filesystem, including missing parents. Fails if it already exists."""
        fs = self.new_fs(path)
        if fs.exists():
            raise AlreadyExistsError(f"fs {path} already exists")
        self.run("create", "-p", path)
        logger.info("Created filesystem %s.", path)
        return fs

    def list_fs(self, root: Optional[str] = None) -> List[Filesystem]:
        """Lists root and everything below it; all filesystems when root is None."""
        args = ["list", "-Hr", "-o", "name"]
        if root is not None:
            args.append(root)
        try:
            stdout = self.run(*args)
        except NotFoundError:
            return []
        return [self.new_fs(name) for name in stdout.strip().split("\n") if name]
