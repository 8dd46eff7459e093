"""
Pause/resume bookkeeping for a client transport.

Reading is paused when a client pushes more unread lines than the session has dispatched (the
session resumes it once its buffer drains). Writing is paused by the transport itself when its
send buffer crosses the high water mark; the session waits on drain() before writing more replies.
"""
import asyncio

HIGH_WATER_LIMIT_READ = 64 * 1024


class FlowControl:

    def __init__(self, transport: asyncio.Transport):
        self._read_paused = False
        self._write_paused = False
        self._write_event: asyncio.Event = asyncio.Event()
        self._write_event.set()
        self._transport = transport

    @property
    def read_paused(self) -> bool:
        return self._read_paused

    @property
    def write_paused(self) -> bool:
        return self._write_paused

    async def drain(self):
        await self._write_event.wait()

    def pause_reading(self):
        if not self._read_paused:
            self._read_paused = True
            self._transport.pause_reading()

    def resume_reading(self):
        if self._read_paused:
            self._read_paused = False
            if not self._transport.is_closing():
                self._transport.resume_reading()

    def pause_writing(self):
        if not self._write_paused:
            self._write_paused = True
            self._write_event.clear()

    def resume_writing(self):
        if self._write_paused:
            self._write_paused = False
            self._write_event.set()
