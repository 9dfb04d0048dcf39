"""Turns zfs diagnostics into typed exceptions.

zfs reports failures as free-form text on stderr whose wording drifts between
releases. Every pattern the library depends on lives in RULES below; callers
branch on exception classes, never on message text.
"""
import re
from typing import Callable, List, Optional, Pattern, Tuple, Type, Union

from .errors import (
    AlreadyExistsError,
    BadPropertyGetError,
    BadPropertySetError,
    BrokenStreamError,
    IncrementalBaseMismatchError,
    InvalidDatasetNameError,
    NeedsElevationError,
    NeedsRecursiveError,
    NotFoundError,
    NotMountedNeedsElevationError,
    PromoteNotCloneError,
    ReceiverAlreadyExistsError,
    ZfsCmdError,
)

BAD_PROPERTY_GET = re.compile(r"bad property list: invalid property '.+'$")
BAD_PROPERTY_SET = re.compile(r"cannot set property for '.+': invalid property '.+'$")
NEEDS_RECURSIVE = re.compile(r"cannot destroy '.+': (filesystem|snapshot) has (children|dependent clones)$")
NOT_FOUND = re.compile(r"cannot open '.+': dataset does not exist$")
NOT_MOUNTED = re.compile(r"^filesystem successfully created, but not mounted")
NEEDS_ELEVATION = re.compile(r"need sudo")
ALREADY_EXISTS = re.compile(r"(fs .+|dataset) already exists$")
PROMOTE_NOT_CLONE = re.compile(r"cannot promote '.+': not a cloned filesystem$")
INVALID_DATASET_NAME = re.compile(r"invalid( dataset)? name$")
RECEIVER_EXISTS = re.compile(r"cannot receive new filesystem stream: destination ('.+' exists$|has snapshots)")
INCREMENTAL_MISMATCH = re.compile(r"cannot receive incremental stream: most recent snapshot of '.+' does not")
BROKEN_PIPE = re.compile(r"broken pipe$", re.IGNORECASE)

EXIT_STATUS_MARKER = "exit status"

Rule = Tuple[Pattern, Type[ZfsCmdError], Optional[Callable[[str, List[str]], str]]]

# Order matters: the first rule matching either the first or the last line wins.
RULES: List[Rule] = [
    (BAD_PROPERTY_GET, BadPropertyGetError, None),
    (BAD_PROPERTY_SET, BadPropertySetError, None),
    (NEEDS_RECURSIVE, NeedsRecursiveError, None),
    (NOT_FOUND, NotFoundError, None),
    (NOT_MOUNTED, NotMountedNeedsElevationError, lambda line, lines: f"{line} need sudo to mount"),
    (NEEDS_ELEVATION, NeedsElevationError, None),
    (ALREADY_EXISTS, AlreadyExistsError, None),
    (PROMOTE_NOT_CLONE, PromoteNotCloneError, None),
    (INVALID_DATASET_NAME, InvalidDatasetNameError, None),
    (RECEIVER_EXISTS, ReceiverAlreadyExistsError, None),
    (INCREMENTAL_MISMATCH, IncrementalBaseMismatchError, lambda line, lines: " ".join(lines)),
    (BROKEN_PIPE, BrokenStreamError, None),
]


def _to_text(data: Union[bytes, str, None]) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def split_diagnostic(text: str) -> List[str]:
    """Splits diagnostic text into lines, dropping the exit status marker and a trailing blank."""
    lines = text.split("\n")
    if EXIT_STATUS_MARKER in lines[0] and len(lines) > 1:
        lines = lines[1:]
    if len(lines) > 1 and lines[-1] == "":
        lines = lines[:-1]
    return lines


def classify_lines(lines: List[str], returncode: Optional[int] = None) -> ZfsCmdError:
    first, last = lines[0], lines[-1]
    for pattern, error_cls, render in RULES:
        for line in (first, last):
            if pattern.search(line):
                message = render(line, lines) if render else line
                return error_cls(message, lines=lines, returncode=returncode)
    return ZfsCmdError("; ".join(lines), lines=lines, returncode=returncode)


def classify(
    returncode: Optional[int],
    stderr: Union[bytes, str, None] = None,
    message: Optional[str] = None,
) -> Optional[ZfsCmdError]:
    """
    Returns the exception matching a finished command, or None on success.

    stderr is preferred; message is used when nothing was captured on stderr,
    and a plain "exit status N" line when neither is available.
    """
    if returncode == 0:
        return None
    text = _to_text(stderr)
    if not text.strip():
        text = message or f"{EXIT_STATUS_MARKER} {returncode}"
    return classify_lines(split_diagnostic(text), returncode=returncode)


def classify_text(text: str) -> ZfsCmdError:
    """Classifies a diagnostic that did not come from a process exit."""
    return classify_lines(split_diagnostic(text))
