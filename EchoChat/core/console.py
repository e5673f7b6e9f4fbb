"""
Console input for the client and the server operator console.

Reading stdin blocks, so a daemon thread reads lines and hands them to the
event loop through an asyncio.Queue. The thread never keeps the process
alive after the loop is done.
"""

import asyncio
import logging
import sys
import threading
from typing import Awaitable, Callable, Optional, TextIO

logger = logging.getLogger(__name__)


class ConsoleReader:
    """
    Reads lines from a text stream on a background thread.

    ``readline()`` returns the next line without its trailing newline, or
    None once the stream is exhausted.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._queue: Optional[asyncio.Queue] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the reader thread. Must be called from the running loop."""
        if self._thread is not None:
            return
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._thread = threading.Thread(
            target=self._read_lines,
            args=(loop, self._stream or sys.stdin),
            name="console-reader",
            daemon=True,
        )
        self._thread.start()

    def _read_lines(self, loop: asyncio.AbstractEventLoop, stream: TextIO) -> None:
        try:
            for line in iter(stream.readline, ""):
                loop.call_soon_threadsafe(self._queue.put_nowait, line.rstrip("\r\n"))
        except (OSError, ValueError) as e:
            logger.warning("Console input failed: %s", e)
        finally:
            try:
                loop.call_soon_threadsafe(self._queue.put_nowait, None)
            except RuntimeError:
                # Loop already closed
                pass

    async def readline(self) -> Optional[str]:
        """Wait for the next line; None means end of input."""
        if self._queue is None:
            self.start()
        return await self._queue.get()


async def run_console(
    reader: ConsoleReader,
    handle: Callable[[str], Awaitable[None]],
    finished: Awaitable[int],
    on_eof: Optional[Callable[[], Awaitable[object]]] = None
) -> int:
    """
    Feed console lines to ``handle`` until ``finished`` resolves.

    Blank lines are skipped. At end of input ``on_eof`` is awaited, if given;
    either way the function then waits for ``finished``.

    Args:
        reader: Source of console lines
        handle: Coroutine function run for each line
        finished: Resolves with the exit status when the session ends
        on_eof: Coroutine function run when input is exhausted

    Returns:
        The exit status from ``finished``
    """
    reader.start()
    finished = asyncio.ensure_future(finished)

    while not finished.done():
        next_line = asyncio.ensure_future(reader.readline())
        await asyncio.wait({next_line, finished}, return_when=asyncio.FIRST_COMPLETED)
        if not next_line.done():
            next_line.cancel()
            break

        line = next_line.result()
        if line is None:
            logger.debug("Console input exhausted")
            if on_eof is not None:
                await on_eof()
            break
        if line.strip():
            await handle(line)

    return await finished
