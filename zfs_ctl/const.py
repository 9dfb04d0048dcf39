NAME = "zfs-ctl"
VERSION = "0.1.0"

ZFS_BIN = "zfs"
SUDO_BIN = "sudo"
SSH_PORT = 22
SSH_CONNECT_TIMEOUT = 10

# Read size used when piping a send stream into a receiver.
COPY_CHUNK_SIZE = 1024 * 1024
