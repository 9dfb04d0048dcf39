import pytest

from zfs_ctl.classifier import classify, classify_text, split_diagnostic
from zfs_ctl.errors import (
    AlreadyExistsError,
    BadPropertyGetError,
    BadPropertySetError,
    BrokenStreamError,
    ErrorKind,
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


@pytest.mark.parametrize("stderr, error_cls", [
    ("bad property list: invalid property 'notexist'\n", BadPropertyGetError),
    ("cannot set property for 'tank/test/fs1': invalid property 'oki'\n", BadPropertySetError),
    ("cannot destroy 'tank/test/fs1': filesystem has children\n"
     "use '-r' to destroy the following datasets:\ntank/test/fs1@s1\n", NeedsRecursiveError),
    ("cannot destroy 'tank/test/fs1': filesystem has dependent clones\n"
     "use '-R' to destroy the following datasets:\ntank/test/clonedfs\n", NeedsRecursiveError),
    ("cannot open 'tank/test/unicorn': dataset does not exist\n", NotFoundError),
    ("need sudo\n", NeedsElevationError),
    ("fs tank/test/fs1 already exists", AlreadyExistsError),
    ("cannot create snapshot 'tank/test/fs1@s1': dataset already exists\n", AlreadyExistsError),
    ("cannot promote 'tank/test/fs7': not a cloned filesystem\n", PromoteNotCloneError),
    ("cannot open 'tank/test/bad/': invalid dataset name\n", InvalidDatasetNameError),
    ("cannot create 'tank/test/bad/': invalid name\n", InvalidDatasetNameError),
    ("cannot receive new filesystem stream: destination 'tank/test/src' exists\n"
     "must specify -F to overwrite it\n", ReceiverAlreadyExistsError),
    ("cannot receive new filesystem stream: destination has snapshots (eg. tank/test/src@s1)\n"
     "must destroy them to overwrite it\n", ReceiverAlreadyExistsError),
    ("warning: cannot send 'tank/test/src@s1': Broken pipe\n", BrokenStreamError),
])
def test_classify_known_diagnostics(stderr, error_cls) -> None:
    error = classify(1, stderr.encode())
    assert type(error) is error_cls
    assert error.returncode == 1


def test_classify_success_is_none() -> None:
    assert classify(0, b"anything") is None


def test_classified_error_carries_matched_line() -> None:
    error = classify(1, b"cannot open 'tank/test/unicorn': dataset does not exist\n")
    assert str(error) == "cannot open 'tank/test/unicorn': dataset does not exist"
    assert error.kind is ErrorKind.NOT_FOUND


def test_not_mounted_is_matched_on_last_line() -> None:
    stderr = b"cannot mount '/tank/sudo/fs1': failed to create mountpoint\n" \
             b"filesystem successfully created, but not mounted\n"
    error = classify(1, stderr)
    assert isinstance(error, NotMountedNeedsElevationError)
    assert str(error) == "filesystem successfully created, but not mounted need sudo to mount"


def test_incremental_mismatch_joins_all_lines() -> None:
    stderr = b"cannot receive incremental stream: most recent snapshot of 'tank/test/dest' does not\n" \
             b"match incremental source\n"
    error = classify(1, stderr)
    assert isinstance(error, IncrementalBaseMismatchError)
    assert str(error) == ("cannot receive incremental stream: most recent snapshot of "
                          "'tank/test/dest' does not match incremental source")


def test_unclassified_joins_lines() -> None:
    error = classify(2, b"something odd\nhappened here\n")
    assert type(error) is ZfsCmdError
    assert error.kind is ErrorKind.UNCLASSIFIED
    assert str(error) == "something odd; happened here"
    assert error.lines == ["something odd", "happened here"]


def test_earlier_rule_wins_over_later_rule() -> None:
    # The first line matches a later rule, the last line an earlier one.
    error = classify(1, b"need sudo\ncannot open 'tank/x': dataset does not exist\n")
    assert isinstance(error, NotFoundError)


def test_exit_status_marker_is_dropped() -> None:
    error = classify(1, message="exit status 1\ncannot promote 'tank/a': not a cloned filesystem")
    assert isinstance(error, PromoteNotCloneError)


def test_lone_exit_status_marker_is_kept() -> None:
    error = classify(3)
    assert type(error) is ZfsCmdError
    assert str(error) == "exit status 3"


def test_message_used_when_stderr_is_empty() -> None:
    error = classify(1, b"", message="cannot open 'tank/a': dataset does not exist")
    assert isinstance(error, NotFoundError)


def test_split_diagnostic() -> None:
    assert split_diagnostic("exit status 1\nfirst\nsecond\n") == ["first", "second"]
    assert split_diagnostic("exit status 1") == ["exit status 1"]
    assert split_diagnostic("only\n") == ["only"]


def test_classify_text_broken_pipe() -> None:
    assert isinstance(classify_text(str(BrokenPipeError(32, "Broken pipe"))), BrokenStreamError)
