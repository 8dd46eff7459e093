"""
Newline framing for the client byte stream.

data_received() hands us whatever chunks the transport delivers; the session pulls complete lines
out one at a time. A line may hold at most `max_size` bytes (not counting the "\n"). Anything
longer is reported once as TOO_LONG and the remainder of that line is thrown away as it arrives,
so the buffer never grows past max_size for a single line.
"""
import enum
from .config import MAX_MESSAGE_SIZE


class Scan(enum.Enum):
    TOO_LONG = "too_long"


TOO_LONG = Scan.TOO_LONG


class LineScanner:

    def __init__(self, max_size: int = MAX_MESSAGE_SIZE):
        self.max_size = max_size
        self._buffer = bytearray()
        self._discarding = False
        self.eof = False

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def feed_eof(self) -> None:
        self.eof = True

    def next_line(self) -> bytes | Scan | None:
        """
        Returns the next complete line without its newline, TOO_LONG when the current line
        overflowed, or None when more data is needed. Once EOF was fed, bytes left without a
        trailing newline come out as the final line.
        """
        while True:
            index = self._buffer.find(b"\n")

            if self._discarding:
                if index < 0:
                    self._buffer.clear()
                    return None
                del self._buffer[:index + 1]
                self._discarding = False
                continue

            if index < 0:
                if self._overflowed(self._buffer):
                    self._buffer.clear()
                    self._discarding = True
                    return TOO_LONG
                if self.eof and self._buffer:
                    line = bytes(self._buffer)
                    self._buffer.clear()
                    return line
                return None

            line = bytes(self._buffer[:index])
            del self._buffer[:index + 1]
            if self._overflowed(line):
                return TOO_LONG
            return line

    def _overflowed(self, pending) -> bool:
        # a trailing "\r" belongs to the line ending, not the message
        size = len(pending)
        if pending.endswith(b"\r"):
            size -= 1
        return size > self.max_size
