from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    BAD_PROPERTY_GET = "BadPropertyGet"
    BAD_PROPERTY_SET = "BadPropertySet"
    NEEDS_RECURSIVE = "NeedsRecursive"
    NOT_FOUND = "NotFound"
    NOT_MOUNTED_NEEDS_ELEVATION = "NotMountedNeedsElevation"
    NEEDS_ELEVATION = "NeedsElevation"
    ALREADY_EXISTS = "AlreadyExists"
    PROMOTE_NOT_CLONE = "PromoteNotClone"
    INVALID_DATASET_NAME = "InvalidDatasetName"
    RECEIVER_ALREADY_EXISTS = "ReceiverAlreadyExists"
    INCREMENTAL_BASE_MISMATCH = "IncrementalBaseMismatch"
    BROKEN_PIPE = "BrokenPipe"
    POOL_MISMATCH = "PoolMismatch"
    UNCLASSIFIED = "Unclassified"


class ZfsError(Exception):
    """Base exception for zfs-ctl errors."""
    kind: Optional[ErrorKind] = None


class ZfsCmdError(ZfsError):
    """A zfs command failed. Unclassified unless a subclass says otherwise."""
    kind = ErrorKind.UNCLASSIFIED

    def __init__(self, message: str, lines: Optional[List[str]] = None, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        self.lines = lines if lines is not None else [message]
        self.returncode = returncode


class BadPropertyGetError(ZfsCmdError):
    kind = ErrorKind.BAD_PROPERTY_GET


class BadPropertySetError(ZfsCmdError):
    kind = ErrorKind.BAD_PROPERTY_SET


class NeedsRecursiveError(ZfsCmdError):
    """Destroy refused because the dataset has children or dependents."""
    kind = ErrorKind.NEEDS_RECURSIVE


class NotFoundError(ZfsCmdError):
    kind = ErrorKind.NOT_FOUND


class NotMountedNeedsElevationError(ZfsCmdError):
    """Filesystem was created but could not be mounted, usually missing root."""
    kind = ErrorKind.NOT_MOUNTED_NEEDS_ELEVATION


class NeedsElevationError(ZfsCmdError):
    kind = ErrorKind.NEEDS_ELEVATION


class AlreadyExistsError(ZfsCmdError):
    kind = ErrorKind.ALREADY_EXISTS


class PromoteNotCloneError(ZfsCmdError):
    kind = ErrorKind.PROMOTE_NOT_CLONE


class InvalidDatasetNameError(ZfsCmdError):
    kind = ErrorKind.INVALID_DATASET_NAME


class ReceiverAlreadyExistsError(ZfsCmdError):
    kind = ErrorKind.RECEIVER_ALREADY_EXISTS


class IncrementalBaseMismatchError(ZfsCmdError):
    kind = ErrorKind.INCREMENTAL_BASE_MISMATCH


class BrokenStreamError(ZfsCmdError):
    """A transfer participant went away before the stream was finished."""
    kind = ErrorKind.BROKEN_PIPE


class PoolMismatchError(ZfsError):
    kind = ErrorKind.POOL_MISMATCH

    def __init__(self, source: str, target: str) -> None:
        super().__init__("error creating clone: source and target in different pools")
        self.source = source
        self.target = target


class PropertyNotSetError(ZfsError):
    """The stored property value differs from the requested one."""

    def __init__(self, prop: str, wanted: str, actual: str) -> None:
        super().__init__(f"property {prop} not set")
        self.prop = prop
        self.wanted = wanted
        self.actual = actual


class PropertyConversionError(ZfsError, ValueError):
    pass


class CommandNotFoundError(ZfsError):
    pass


class CommandTimeoutError(ZfsError):
    pass


class TransportError(ZfsError):
    """Connecting to or talking with a remote host failed."""
    pass


class ConfigError(ZfsError):
    pass
