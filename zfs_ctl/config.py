import json
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Optional

from .const import COPY_CHUNK_SIZE, SSH_PORT, ZFS_BIN
from .errors import ConfigError


@dataclass
class ZfsConfig:
    """Settings for building a Zfs client. host=None means the local machine."""
    sudo: bool = False
    zfs_binary: str = ZFS_BIN
    host: Optional[str] = None
    port: int = SSH_PORT
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    key_filename: Optional[str] = None
    chunk_size: int = COPY_CHUNK_SIZE

    @classmethod
    def load(cls, path: str) -> "ZfsConfig":
        """Reads settings from a JSON file. Unknown keys are rejected."""
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            raise ConfigError(
                f"Failed to read or parse config file {path}: {e}"
            ) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object.")
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown settings in {path}: {', '.join(unknown)}")
        return cls(**data)

    def save(self, path: str) -> None:
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
            with open(path, "w") as f:
                json.dump(asdict(self), f, indent=2)
            # May hold an SSH password.
            os.chmod(path, 0o600)
        except IOError as e:
            raise ConfigError(
                f"Failed to write config file {path}: {e}") from e
