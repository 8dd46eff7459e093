import logging
import os
from typing import TextIO
from .util import rfc3339

logger = logging.getLogger(__name__)


def log_filename(address: str) -> str:
    safe_addr = address.replace(":", "_")
    return f"client_{safe_addr}.log"


class ClientLog:
    """
    Append-only transcript of one client's lines, one `[<RFC3339>] <message>` record per line.

    Opening can fail (read-only directory, too many open files). The session must keep working
    without a transcript then, so a sink that could not be opened, or that failed to write once,
    turns every later append into a no-op.
    """

    def __init__(self, address: str, log_dir: str = "."):
        self.address = address
        self.path = os.path.join(log_dir, log_filename(address))
        self._file: TextIO | None = None

    def open(self) -> "ClientLog":
        try:
            self._file = open(self.path, "a", encoding="utf-8")
        except OSError as exc:
            logger.error("Error creating log file for %s: %s", self.address, exc)
            self._file = None
        return self

    def append(self, message: str) -> None:
        if self._file is None:
            return
        try:
            self._file.write(f"[{rfc3339()}] {message}\n")
            self._file.flush()
        except (OSError, ValueError) as exc:
            logger.error("Error writing log file for %s: %s", self.address, exc)
            self.close()

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as exc:
            logger.warning("Error closing log file for %s: %s", self.address, exc)
        self._file = None

    def __enter__(self) -> "ClientLog":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()
