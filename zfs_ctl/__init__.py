from .errors import *
from .const import NAME, VERSION
from .classifier import classify, classify_text
from .transport import LocalTransport, SshTransport, Transport
from .runner import Command, Runner
from .config import ZfsConfig
from .dataset import Dataset, RecursiveFlag
from .filesystem import Filesystem
from .snapshot import Snapshot
from .transfer import Transfer, TransferState
from .zfs import Zfs
