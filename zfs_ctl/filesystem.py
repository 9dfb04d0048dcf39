import logging
from typing import TYPE_CHECKING, List

from .dataset import Dataset

if TYPE_CHECKING:
    from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class Filesystem(Dataset):
    """A mountable, writable dataset. Clones are Filesystems too."""

    def snapshot(self, name: str) -> "Snapshot":
        path = f"{self.path}@{name}"
        self._zfs.run("snapshot", path)
        logger.info("Created snapshot %s.", path)
        return self._zfs.new_snapshot(path)

    def list_snapshots(self) -> List["Snapshot"]:
        """Lists snapshots of this filesystem and of its descendants."""
        stdout = self._zfs.run("list", "-Hr", "-o", "name", "-t", "snapshot", self.path)
        return [
            self._zfs.new_snapshot(name)
            for name in stdout.strip().split("\n")
            if "@" in name
        ]

    def promote(self) -> None:
        self._zfs.run("promote", self.path)
        logger.info("Promoted clone %s.", self.path)

    def mount(self) -> None:
        self._zfs.run("mount", self.path)

    def unmount(self) -> None:
        self._zfs.run("unmount", self.path)
