"""
Inactivity watchdog for one connection.

The watchdog runs as its own task and is the only code that ever moves its state:

    RUNNING --deadline elapsed--> FIRED    (writes the inactivity notice, closes the transport)
    RUNNING --stop()-----------> STOPPED  (session ended on its own)

A reset is a rendezvous rather than a queued message: reset() hands the watchdog task a future and
does not return until the task has restarted the deadline and resolved it. The session therefore
never reads its next line against a stale deadline.

If a reset is handed over in the same loop iteration that the deadline expires, the reset wins.
The watchdog sees a completed hand-off when its wait times out, acknowledges it and keeps running.
Because only this task can fire, the connection is closed at most once by the watchdog, and a
reset is never silently dropped.
"""
import asyncio
import enum
import logging
from asyncio import Transport
from .dispatch import INACTIVITY

logger = logging.getLogger(__name__)


class WatchdogState(enum.Enum):
    RUNNING = "running"
    FIRED = "fired"
    STOPPED = "stopped"


class Watchdog:

    def __init__(self,
                 transport: Transport,
                 timeout: float,
                 name: str = "",
                 loop: asyncio.AbstractEventLoop | None = None):
        self.loop = loop or asyncio.get_event_loop()
        self.transport = transport
        self.timeout = timeout
        self.name = name
        self.state = WatchdogState.RUNNING

        # Hand-off slot for the next reset; replaced each time the task consumes one.
        self._waiter: asyncio.Future = self.loop.create_future()
        self._task: asyncio.Task | None = None

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = self.loop.create_task(self.run())
        return self._task

    async def reset(self) -> bool:
        """
        Restart the inactivity window. Returns False if the watchdog already fired or was stopped.
        """
        waiter = self._waiter
        if self.state is not WatchdogState.RUNNING or waiter.done():
            return False
        ack = self.loop.create_future()
        waiter.set_result(ack)
        return await ack

    async def run(self) -> None:
        deadline = self.loop.time() + self.timeout
        while self.state is WatchdogState.RUNNING:
            waiter = self._waiter
            try:
                ack = await asyncio.wait_for(waiter, timeout=max(deadline - self.loop.time(), 0))
            except asyncio.TimeoutError:
                if waiter.done() and not waiter.cancelled():
                    ack = waiter.result()
                else:
                    self._fire()
                    return

            self._waiter = self.loop.create_future()
            deadline = self.loop.time() + self.timeout
            if not ack.done():
                ack.set_result(True)

    def stop(self) -> None:
        if self.state is WatchdogState.RUNNING:
            self.state = WatchdogState.STOPPED
        # release a session still waiting on a hand-off we will never consume
        waiter = self._waiter
        if waiter.done() and not waiter.cancelled():
            ack = waiter.result()
            if not ack.done():
                ack.set_result(False)
        else:
            waiter.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _fire(self) -> None:
        self.state = WatchdogState.FIRED
        logger.info("%s inactive for %ss, disconnecting", self.name, self.timeout)
        if self.transport.is_closing():
            return
        self.transport.write(INACTIVITY.encode())
        self.transport.close()
