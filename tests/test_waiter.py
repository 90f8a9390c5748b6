"""Tests for the cancellable waiter."""
import asyncio
import os
import signal
import sys

import pytest

from buildpush.errors import ErrorKind, TransferFailedError, UserCancelledError
from buildpush.orchestrator import TransferSignals
from buildpush.waiter import CancellableWaiter, interrupt_on_sigint


def _signals(work):
    loop = asyncio.get_running_loop()
    completed = loop.create_future()
    failed = loop.create_future()

    async def run():
        try:
            await work()
        except Exception as exc:
            failed.set_result(exc)
            return
        completed.set_result(None)

    return TransferSignals(completed=completed, failed=failed, task=asyncio.create_task(run()))


@pytest.mark.asyncio
async def test_completion_returns():
    async def work():
        await asyncio.sleep(0)

    signals = _signals(work)
    await CancellableWaiter(asyncio.Event()).wait(signals)

    assert signals.completed.done()
    assert not signals.failed.done()


@pytest.mark.asyncio
async def test_failure_is_wrapped():
    cause = ConnectionError("reset by peer")

    async def work():
        raise cause

    with pytest.raises(TransferFailedError) as exc_info:
        await CancellableWaiter(asyncio.Event()).wait(_signals(work))

    assert exc_info.value.kind == ErrorKind.TRANSFER_FAILURE
    assert exc_info.value.__cause__ is cause


@pytest.mark.asyncio
async def test_interrupt_cancels_wait_but_not_transfer():
    interrupt = asyncio.Event()
    release = asyncio.Event()

    async def work():
        interrupt.set()
        await release.wait()

    signals = _signals(work)

    with pytest.raises(UserCancelledError) as exc_info:
        await CancellableWaiter(interrupt).wait(signals)

    assert exc_info.value.kind == ErrorKind.USER_CANCELLATION
    assert not signals.task.done()
    assert not signals.completed.done()
    assert not signals.failed.done()

    # The abandoned transfer still runs to its own end.
    release.set()
    await signals.task
    assert signals.completed.done()


@pytest.mark.asyncio
async def test_interrupt_already_set_wins_over_pending_transfer():
    interrupt = asyncio.Event()
    interrupt.set()

    async def work():
        await asyncio.Event().wait()

    signals = _signals(work)
    with pytest.raises(UserCancelledError):
        await CancellableWaiter(interrupt).wait(signals)

    signals.task.cancel()


@pytest.mark.asyncio
@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
async def test_interrupt_on_sigint_sets_event():
    with interrupt_on_sigint() as interrupt:
        os.kill(os.getpid(), signal.SIGINT)
        await asyncio.wait_for(interrupt.wait(), timeout=2)

    assert interrupt.is_set()
