import logging
from enum import IntEnum
from typing import TYPE_CHECKING

from .errors import NotFoundError, PropertyConversionError, PropertyNotSetError
from .runner import Command

if TYPE_CHECKING:
    from .zfs import Zfs

logger = logging.getLogger(__name__)


class RecursiveFlag(IntEnum):
    """How far destroy() may reach: NO < SOFT (-r) < HARD (-R)."""
    NO = 0
    SOFT = 1
    HARD = 2


class Dataset:
    """
    Behaviour shared by every ZFS dataset: properties, existence, destroy and
    path decomposition.

    A Dataset is only a path plus the client used to reach it. Nothing is
    cached; every call asks zfs again.
    """

    def __init__(self, zfs: "Zfs", path: str) -> None:
        self._zfs = zfs
        self.path = path

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return type(self) is type(other) and self.path == other.path

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.path))

    def get_property(self, prop: str) -> str:
        """Gets a single property value in parsable form."""
        stdout = self._zfs.run("get", "-Hp", "-o", "value", prop, self.path)
        return stdout.split("\n")[0]

    def get_property_int(self, prop: str) -> int:
        value = self.get_property(prop)
        try:
            return int(value)
        except ValueError as e:
            raise PropertyConversionError(f"error converting to int: {e}") from e

    def set_property(self, prop: str, value: str) -> None:
        """Sets a property and reads it back, zfs may coerce or ignore values."""
        self._zfs.run("set", f"{prop}={value}", self.path)
        stored = self.get_property(prop)
        if stored != value:
            raise PropertyNotSetError(prop, value, stored)

    def exists(self) -> bool:
        try:
            stdout = self._zfs.run("list", "-H", "-o", "name", self.path)
        except NotFoundError:
            return False
        return stdout.split("\n")[0] == self.path

    def destroy(self, recursive: RecursiveFlag = RecursiveFlag.NO) -> None:
        args = ["destroy"]
        if recursive == RecursiveFlag.SOFT:
            args.append("-r")
        elif recursive == RecursiveFlag.HARD:
            args.append("-R")
        args.append(self.path)
        self._zfs.run(*args)
        logger.info("Destroyed %s (%s).", self.path, recursive.name)

    def get_pool(self) -> str:
        return self.path.split("/", 1)[0].split("@", 1)[0]

    def get_last_path(self) -> str:
        return self.path.split("/")[-1]

    def receive(self) -> Command:
        """
        Prepares this path to receive a stream and starts `zfs receive`.

        The returned command is running; write the stream to its stdin.
        """
        self._zfs.run("create", "-p", self.path)
        command = self._zfs.command("receive", "-F", self.path)
        command.start()
        return command
