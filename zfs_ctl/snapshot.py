import logging
from typing import TYPE_CHECKING, List, Optional

from .dataset import Dataset
from .errors import InvalidDatasetNameError, PoolMismatchError
from .runner import Command
from .transfer import Transfer

if TYPE_CHECKING:
    from .filesystem import Filesystem
    from .zfs import Zfs

logger = logging.getLogger(__name__)


class Snapshot(Dataset):
    """
    A read-only, point-in-time view of a filesystem, addressed as
    `<filesystem>@<name>`.

    `fs` is rebuilt from the path; it is a reference by name, not ownership.
    """

    def __init__(self, zfs: "Zfs", path: str) -> None:
        if path.count("@") != 1:
            raise InvalidDatasetNameError(f"cannot open '{path}': invalid snapshot name")
        super().__init__(zfs, path)
        fs_path, self.name = path.split("@")
        self.fs: "Filesystem" = zfs.new_fs(fs_path)

    def clone(self, target_path: str) -> "Filesystem":
        """Creates a writable filesystem from this snapshot in the same pool."""
        target = self._zfs.new_fs(target_path)
        if self.get_pool() != target.get_pool():
            raise PoolMismatchError(self.path, target_path)
        self._zfs.run("clone", self.path, target_path)
        logger.info("Cloned %s to %s.", self.path, target_path)
        return target

    def list_clones(self) -> List["Filesystem"]:
        """Filesystems of this pool whose origin is this snapshot."""
        return [
            fs for fs in self._zfs.list_fs(self.get_pool())
            if fs.get_property("origin") == self.path
        ]

    def send_command(self, base: Optional["Snapshot"] = None, preserve_properties: bool = False) -> Command:
        """Builds, without starting, the `zfs send` producing this snapshot's stream."""
        args = ["send"]
        if preserve_properties:
            args.append("-p")
        if base is not None:
            args.extend(["-i", base.path])
        args.append(self.path)
        return self._zfs.command(*args)

    def send(
        self,
        destination: Dataset,
        preserve_properties: bool = False,
        timeout: Optional[float] = None,
    ) -> None:
        """Sends the full snapshot into destination, which may live on another host."""
        Transfer(
            self,
            destination,
            preserve_properties=preserve_properties,
            timeout=timeout,
            chunk_size=self._zfs.chunk_size,
        ).run()

    def send_incremental(
        self,
        base: "Snapshot",
        destination: Dataset,
        preserve_properties: bool = False,
        timeout: Optional[float] = None,
    ) -> None:
        """Sends only the changes between base and this snapshot."""
        Transfer(
            self,
            destination,
            base=base,
            preserve_properties=preserve_properties,
            timeout=timeout,
            chunk_size=self._zfs.chunk_size,
        ).run()
