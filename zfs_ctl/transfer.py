"""
Snapshot send/receive.

zfs only offers one-directional primitives joined by standard streams, so a
transfer supervises two processes: a `zfs receive` started on the destination
side first, then a `zfs send` on the source side whose stdout is copied into
the receiver's stdin. The runners of the two sides are independent, so either
end may be local or remote.

Once the copy reaches end of stream the receiver is waited on first, then the
sender. Both must exit cleanly; when both fail the receiver's error is raised
since it names the actual cause, while the sender usually only reports the
broken pipe. If the copy broke or the receiver failed, the sender is killed
before it is waited on, and its exit status is not reported.
"""
import logging
import shutil
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .classifier import classify, classify_text
from .const import COPY_CHUNK_SIZE
from .errors import NotFoundError, ZfsCmdError
from .runner import Command

if TYPE_CHECKING:
    from .dataset import Dataset
    from .snapshot import Snapshot

logger = logging.getLogger(__name__)


class TransferState(Enum):
    VALIDATING = "validating"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class Transfer:
    def __init__(
        self,
        source: "Snapshot",
        destination: "Dataset",
        base: Optional["Snapshot"] = None,
        preserve_properties: bool = False,
        timeout: Optional[float] = None,
        chunk_size: int = COPY_CHUNK_SIZE,
    ) -> None:
        self.source = source
        self.destination = destination
        self.base = base
        self.preserve_properties = preserve_properties
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.state = TransferState.VALIDATING

    def __repr__(self) -> str:
        return (f"Transfer({self.source.path!r} -> {self.destination.path!r}, "
                f"base={self.base.path if self.base else None!r}, state={self.state.value})")

    def _set_state(self, state: TransferState) -> None:
        self.state = state
        logger.info("Transfer %s -> %s: %s", self.source.path, self.destination.path, state.value)

    def _validate(self) -> None:
        for snapshot in (self.source, self.base):
            if snapshot is not None and not snapshot.exists():
                raise NotFoundError(f"cannot open '{snapshot.path}': dataset does not exist")

    def _copy(self, sender: Command, receiver: Command) -> Optional[ZfsCmdError]:
        """Copies the send stream into the receiver until end of stream."""
        try:
            shutil.copyfileobj(sender.stdout, receiver.stdin, self.chunk_size)
        except OSError as e:
            logger.warning("Stream into %s broke: %s", self.destination.path, e)
            return classify_text(f"write to '{self.destination.path}': broken pipe")
        finally:
            # The sender gets SIGPIPE if it is still writing.
            sender.stdout.close()
        return None

    def _finish(self, receiver: Command) -> None:
        try:
            receiver.close_stdin()
        except OSError as e:
            # A receiver that already exited cannot take the final flush.
            logger.debug("Closing stdin of %s: %s", receiver, e)

    def run(self) -> None:
        self._set_state(TransferState.VALIDATING)
        try:
            self._validate()
        except Exception:
            self._set_state(TransferState.FAILED)
            raise

        receiver = None
        sender = None
        try:
            self._set_state(TransferState.STREAMING)
            receiver = self.destination.receive()
            sender = self.source.send_command(self.base, self.preserve_properties)
            sender.start()
            copy_error = self._copy(sender, receiver)
            self._finish(receiver)

            self._set_state(TransferState.FINALIZING)
            received = receiver.wait(timeout=self.timeout)
            receive_error = classify(received.returncode, received.stderr)
            stop_sender = copy_error is not None or receive_error is not None
            if stop_sender:
                # Nobody reads the rest of the stream. A remote sender gets no
                # SIGPIPE and would block forever.
                sender.kill()
            sent = sender.wait(timeout=self.timeout)
            send_error = classify(sent.returncode, sent.stderr)
            if stop_sender and send_error is not None:
                # Its exit status is our doing; the receiver or copy error names the cause.
                logger.debug("Stopped sender %s: %s", sender, send_error)
                send_error = None
        except BaseException:
            for command in (sender, receiver):
                if command is not None:
                    command.kill()
            self._set_state(TransferState.FAILED)
            raise
        finally:
            for command in (sender, receiver):
                if command is not None:
                    command.close()

        error = receive_error or send_error or copy_error
        if error is not None:
            self._set_state(TransferState.FAILED)
            raise error
        self._set_state(TransferState.DONE)
