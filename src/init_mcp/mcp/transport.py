"""Stdio transport loop.

A daemon thread does the blocking reads and hands complete lines to the event
loop through a size-1 queue. The event loop processes one line at a time:
dispatch, write, flush, and only then look at the next line. Shutdown is
checked before every line, so a blocked read never delays it.
"""
from __future__ import annotations
import asyncio
import concurrent.futures
import io
import logging
import sys
import threading
from typing import TYPE_CHECKING, Any, Optional, TextIO

if TYPE_CHECKING:
    from init_mcp.mcp.server import Dispatcher

logger = logging.getLogger(__name__)


class EndOfInput:
    """Sentinel published on the line queue when the input stream ends."""

    def __repr__(self) -> str:
        return "<EndOfInput>"


END_OF_INPUT = EndOfInput()


def open_stdin() -> TextIO:
    """Text reader over fd 0 that does not share ``sys.stdin``'s buffer.

    The reader thread may still be blocked in ``readline`` when the
    interpreter exits; it must not hold the lock of the buffered ``sys.stdin``
    object that finalization closes.
    """
    try:
        fd = sys.stdin.fileno()
    except (AttributeError, ValueError, io.UnsupportedOperation):
        return sys.stdin
    raw = io.FileIO(fd, "r", closefd=False)
    return io.TextIOWrapper(raw, encoding="utf-8", errors="replace")


class StdioTransport:
    """Line-delimited JSON-RPC over a pair of text streams."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        reader: Optional[TextIO] = None,
        writer: Optional[TextIO] = None,
    ):
        self.dispatcher = dispatcher
        self.reader = reader if reader is not None else open_stdin()
        self.writer = writer if writer is not None else sys.stdout
        self.responses_written = 0

    # Reader thread

    def _publish(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, item: Any) -> bool:
        """Block until ``queue`` accepts ``item``. False once the loop is gone."""
        try:
            asyncio.run_coroutine_threadsafe(queue.put(item), loop).result()
        except (RuntimeError, concurrent.futures.CancelledError):
            return False
        return True

    def _wait_drained(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> bool:
        """Block until every line already handed over has been processed."""
        try:
            asyncio.run_coroutine_threadsafe(queue.join(), loop).result()
        except (RuntimeError, concurrent.futures.CancelledError):
            return False
        return True

    def _read_lines(
        self,
        loop: asyncio.AbstractEventLoop,
        lines: asyncio.Queue,
        errors: asyncio.Queue,
    ) -> None:
        while True:
            try:
                line = self.reader.readline()
            except (OSError, ValueError) as e:
                if self._wait_drained(loop, lines):
                    self._publish(loop, errors, e)
                return

            if not line:
                self._publish(loop, lines, END_OF_INPUT)
                return

            if not self._publish(loop, lines, line):
                return

    # Main loop

    async def serve(self, shutdown: asyncio.Event) -> None:
        """Process input lines until shutdown, end of input, or a read error."""
        loop = asyncio.get_running_loop()
        lines: asyncio.Queue = asyncio.Queue(maxsize=1)
        errors: asyncio.Queue = asyncio.Queue(maxsize=1)

        reader_thread = threading.Thread(
            target=self._read_lines,
            args=(loop, lines, errors),
            name="stdio-reader",
            daemon=True,
        )
        reader_thread.start()

        shutdown_wait = asyncio.ensure_future(shutdown.wait())
        next_line = asyncio.ensure_future(lines.get())
        next_error = asyncio.ensure_future(errors.get())

        try:
            while True:
                await asyncio.wait(
                    {shutdown_wait, next_line, next_error},
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if shutdown_wait.done():
                    logger.info("Shutdown requested, stopping transport")
                    return

                if next_line.done():
                    line = next_line.result()
                    if line is END_OF_INPUT:
                        logger.info("End of input, client disconnected")
                        return

                    try:
                        if not await self.handle_line(line):
                            return
                    finally:
                        lines.task_done()

                    next_line = asyncio.ensure_future(lines.get())
                    continue

                error = next_error.result()
                logger.error(f"Error reading input: {error}")
                return

        finally:
            for task in (shutdown_wait, next_line, next_error):
                task.cancel()

    async def handle_line(self, line: str) -> bool:
        """Dispatch one line and write its response.

        Returns:
            False if the output stream is no longer writable
        """
        line = line.strip()
        if not line:
            return True

        framed = await self.dispatcher.dispatch(line)

        try:
            self.writer.write(framed + "\n")
            self.writer.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Error writing response: {e}")
            return False

        self.responses_written += 1
        return True
