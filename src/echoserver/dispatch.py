"""
Line protocol: every trimmed client line maps to exactly one Response.

Personality words ("hello", "bye") are matched case-insensitively and before any command parsing,
so a client typing HELLO never reaches the command table. Commands are case-sensitive and keep
their leading slash.
"""
import datetime
from ._types import Response
from .config import MAX_MESSAGE_SIZE


SAY_SOMETHING = "Say something...\n"
GREETING = "Hi there!\n"
GOODBYE = "Goodbye!\n"
ECHO_USAGE = "Usage: /echo <message>\n"
UNKNOWN_COMMAND = "Unknown command\n"
INACTIVITY = "Disconnected due to inactivity.\n"


def dispatch(line: str, now: datetime.datetime | None = None) -> Response:
    folded = line.lower()
    if folded == "":
        return Response(SAY_SOMETHING)
    if folded == "hello":
        return Response(GREETING)
    if folded == "bye":
        return Response(GOODBYE, close=True)
    if line.startswith("/"):
        return handle_command(line, now=now)
    return Response(f"{line}\n")


def handle_command(line: str, now: datetime.datetime | None = None) -> Response:
    parts = line.split()
    cmd, args = parts[0], parts[1:]

    if cmd == "/time":
        now = now or datetime.datetime.now()
        return Response(f"Server time: {now:%H:%M:%S}\n")
    if cmd == "/quit":
        return Response(GOODBYE, close=True)
    if cmd == "/echo":
        if not args:
            return Response(ECHO_USAGE)
        return Response(" ".join(args) + "\n")
    return Response(UNKNOWN_COMMAND)


def too_long(limit: int = MAX_MESSAGE_SIZE) -> str:
    return f"Message too long. Max {limit} bytes allowed.\n"
