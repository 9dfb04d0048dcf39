import shutil

import pytest

from zfs_ctl import Zfs
from zfs_helpers import TEST_ROOT, USE_SUDO, cleanup_test_datasets, get_zfs_dataset_exists


@pytest.fixture(autouse=True)
def manage_zfs_environment():
    """Skips without a usable ZFS test root, and empties it after each test."""
    if shutil.which("zfs") is None:
        pytest.skip("zfs is not installed")
    if not get_zfs_dataset_exists(TEST_ROOT):
        pytest.skip(f"test dataset {TEST_ROOT} does not exist")
    try:
        yield
    finally:
        cleanup_test_datasets(TEST_ROOT)


@pytest.fixture
def zfs():
    return Zfs.local(sudo=USE_SUDO)


@pytest.fixture
def fs1(zfs):
    return zfs.create_fs(f"{TEST_ROOT}/fs1")
