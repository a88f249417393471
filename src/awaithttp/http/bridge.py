"""Bridge from callback-driven engine calls to awaitable results.

An engine call reports its outcome by invoking a callback from one of the
engine's I/O threads. `await_call` turns that into a single await point:

    >>> call = engine.new_call(request)
    >>> outcome = await await_call(call)

The awaiting task is resumed exactly once. Cancelling it cancels the
engine call, and anything the engine delivers afterwards is dropped.

Stack recording: engine failures surface on an I/O thread, so their
traceback says nothing about who issued the request. With recording on,
the call site is captured when `await_call` starts and attached to the
raised TransportError. This costs a stack walk per request, so it is off
by default and controlled by the AWAITHTTP_STACK_RECORDER environment
variable ("on", "off" or unset).
"""

import asyncio
import enum
import functools
import logging
import os
import threading
import traceback
from typing import Optional

from awaithttp.exceptions import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

STACK_RECORDER_ENV = "AWAITHTTP_STACK_RECORDER"
STACK_RECORDER_ON = "on"
STACK_RECORDER_OFF = "off"


def parse_stack_recorder_flag(value: Optional[str]) -> bool:
    """Interpret a stack recorder switch value.

    Raises:
        ConfigurationError: If the value is not "on", "off" or empty
    """
    if value == STACK_RECORDER_ON:
        return True
    if value in (STACK_RECORDER_OFF, None, ""):
        return False
    raise ConfigurationError(
        f"Environment variable '{STACK_RECORDER_ENV}' has unrecognized value '{value}'"
    )


@functools.lru_cache(maxsize=None)
def is_record_stack() -> bool:
    """Return the process-wide stack recorder switch (read once)."""
    return parse_stack_recorder_flag(os.environ.get(STACK_RECORDER_ENV))


class CompletionState(enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class CompletionRecord:
    """Tri-state completion guarded by a single lock-protected transition.

    Only the first transition out of PENDING succeeds; every later attempt
    returns False, whichever thread it comes from.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = CompletionState.PENDING

    @property
    def state(self) -> CompletionState:
        return self._state

    def transition(self, state: CompletionState) -> bool:
        with self._lock:
            if self._state is not CompletionState.PENDING:
                return False
            self._state = state
            return True


def _discard(outcome, reason: str):
    logger.debug(f"Discarding {reason} delivery")
    if outcome is not None:
        outcome.close()


class _BridgeCallback:
    """Engine callback that forwards the first outcome to an asyncio future."""

    def __init__(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future,
                 record: CompletionRecord, call_stack: Optional[traceback.StackSummary]):
        self._loop = loop
        self._future = future
        self._record = record
        self._call_stack = call_stack

    def on_response(self, call, outcome):
        if not self._record.transition(CompletionState.RESOLVED):
            _discard(outcome, f"late response ({self._record.state.value})")
            return
        self._deliver(self._set_result, outcome, outcome)

    def on_failure(self, call, exc: BaseException):
        if not self._record.transition(CompletionState.RESOLVED):
            _discard(None, f"late failure ({self._record.state.value}): {exc!r}")
            return
        self._deliver(self._set_exception, self._wrap(exc), None)

    def _wrap(self, exc: BaseException) -> BaseException:
        if self._call_stack is None:
            return exc
        wrapped = TransportError(str(exc) or type(exc).__name__, call_stack=self._call_stack)
        wrapped.__cause__ = exc
        return wrapped

    def _deliver(self, setter, value, outcome):
        try:
            self._loop.call_soon_threadsafe(setter, value)
        except RuntimeError:
            # Event loop already closed
            _discard(outcome, "post-shutdown")

    def _set_result(self, outcome):
        if self._future.done():
            _discard(outcome, "response after cancellation")
            return
        self._future.set_result(outcome)

    def _set_exception(self, exc):
        if self._future.done():
            return
        self._future.set_exception(exc)


async def await_call(call, record_stack: Optional[bool] = None):
    """Enqueue `call` and wait for its outcome without blocking the loop.

    Args:
        call: Engine call with enqueue(callback) and cancel()
        record_stack: Capture the call site for failures; defaults to the
            process-wide switch

    Returns:
        The ResponseOutcome delivered by the engine

    Raises:
        TransportError: If the engine reports a failure
        asyncio.CancelledError: If the awaiting task is cancelled
    """
    if record_stack is None:
        record_stack = is_record_stack()
    # Drop this frame from the recorded stack
    call_stack = traceback.StackSummary.from_list(traceback.extract_stack()[:-1]) if record_stack else None

    loop = asyncio.get_running_loop()
    future = loop.create_future()
    record = CompletionRecord()

    call.enqueue(_BridgeCallback(loop, future, record, call_stack))

    try:
        return await future
    except asyncio.CancelledError:
        if record.transition(CompletionState.CANCELLED):
            try:
                call.cancel()
            except Exception as e:
                logger.debug(f"Ignoring error while cancelling call: {e!r}")
        elif future.done() and not future.cancelled() and future.exception() is None:
            # Resolved on the loop but the task was cancelled before resuming
            future.result().close()
        raise
