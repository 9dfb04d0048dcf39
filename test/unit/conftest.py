import pytest

from fakes import FakeTransport
from zfs_ctl import Runner, Zfs


@pytest.fixture
def transport():
    """An in-memory transport recording every command."""
    return FakeTransport()


@pytest.fixture
def zfs(transport):
    return Zfs(Runner(transport))


@pytest.fixture
def sudo_zfs(transport):
    return Zfs(Runner(transport, sudo=True))
