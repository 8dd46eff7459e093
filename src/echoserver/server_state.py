from typing import TYPE_CHECKING
import asyncio
if TYPE_CHECKING:
    from .line_conn import LineConn


class ServerState:
    """
    Shared server state that is available b/w all protocol instances.

    Nothing in here is read on the per-line path; it only exists so shutdown can reach every live
    connection and wait for their sessions to finish.
    """
    def __init__(self):
        self.connections: set[LineConn] = set()
        # one session task per connection; the watchdog tasks are owned by their sessions
        self.tasks: set[asyncio.Task[None]] = set()
        self.total_connections = 0
