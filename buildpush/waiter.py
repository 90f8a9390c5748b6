"""Waiting for a transfer outcome while honouring Ctrl-C."""
import asyncio
import logging
import signal
from contextlib import contextmanager
from typing import Iterator

from .errors import TransferFailedError, UserCancelledError
from .orchestrator import TransferSignals

logger = logging.getLogger(__name__)


class CancellableWaiter:
    """
    One-shot race between transfer completion, transfer error and interrupt.

    The first event decides the outcome. An interrupt only stops the wait;
    the transfer task is left running.
    """

    def __init__(self, interrupt: asyncio.Event):
        self._interrupt = interrupt

    async def wait(self, signals: TransferSignals) -> None:
        interrupted = asyncio.ensure_future(self._interrupt.wait())
        try:
            await asyncio.wait(
                {signals.completed, signals.failed, interrupted},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            interrupted.cancel()

        if signals.completed.done():
            return
        if signals.failed.done():
            cause = signals.failed.result()
            raise TransferFailedError(f"error uploading: {cause}") from cause

        logger.debug("Interrupt received, abandoning transfer")
        raise UserCancelledError("push cancelled from Ctrl-C")


@contextmanager
def interrupt_on_sigint() -> Iterator[asyncio.Event]:
    """
    Yield an event that is set when SIGINT arrives; restore handlers on exit.

    Must be entered from a running event loop.
    """
    loop = asyncio.get_running_loop()
    interrupt = asyncio.Event()

    try:
        loop.add_signal_handler(signal.SIGINT, interrupt.set)
    except (NotImplementedError, RuntimeError):
        pass
    else:
        try:
            yield interrupt
        finally:
            loop.remove_signal_handler(signal.SIGINT)
        return

    # Event loops without signal handler support (Windows).
    try:
        previous = signal.signal(
            signal.SIGINT,
            lambda signum, frame: loop.call_soon_threadsafe(interrupt.set),
        )
    except ValueError:
        logger.debug("Cannot install SIGINT handler outside the main thread")
        yield interrupt
        return

    try:
        yield interrupt
    finally:
        signal.signal(signal.SIGINT, previous)
