"""Signal handling for graceful shutdown."""
from __future__ import annotations
import asyncio
import logging
import signal

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleController:
    """Turns SIGINT/SIGTERM into a shutdown event for the transport loop.

    Nothing is killed here; the transport notices the event before it takes
    the next line.
    """

    def __init__(self) -> None:
        self.shutdown_event = asyncio.Event()
        self.signals_received = 0
        self._fallback_handlers: dict[int, object] = {}

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register shutdown signal handlers on ``loop``."""
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.handle_signal, sig)
            except NotImplementedError:
                # Windows event loops have no add_signal_handler
                def handler(signum, frame, loop=loop):
                    loop.call_soon_threadsafe(self.handle_signal, signum)

                self._fallback_handlers[sig] = signal.signal(sig, handler)
            except (ValueError, RuntimeError) as e:
                # not the main thread
                logger.warning(f"Cannot install handler for signal {sig}: {e}")

    def uninstall(self, loop: asyncio.AbstractEventLoop) -> None:
        """Remove handlers registered by :meth:`install`."""
        for sig in SHUTDOWN_SIGNALS:
            if sig in self._fallback_handlers:
                signal.signal(sig, self._fallback_handlers.pop(sig))
            else:
                loop.remove_signal_handler(sig)

    def handle_signal(self, signum: int) -> None:
        self.signals_received += 1
        if self.shutdown_event.is_set():
            logger.warning(f"Received signal {signum} while already shutting down")
            return

        logger.info("Received shutdown signal, exiting gracefully...")
        self.shutdown()

    def shutdown(self) -> None:
        """Signal shutdown."""
        self.shutdown_event.set()
