from typing import NamedTuple


class Response(NamedTuple):
    """What to do with one client line: text to write back, and whether to hang up after it."""
    reply: str | None
    close: bool = False
