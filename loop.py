# loop.py
"""
Frame scheduling and the start/pause state machine of a render loop.

The loop never owns a timer. It asks a FrameScheduler for the next frame and
the driver (the pygame main loop, or a test) delivers due callbacks by
calling `run_pending` with the current timestamp.
"""
import enum
import itertools
import logging
from typing import Callable, Dict, Optional

# --- Data Contracts ---
#
# class FrameScheduler:
#   - request(callback) -> int: queues callback for the next frame.
#   - cancel(handle) -> None: drops a queued callback; unknown handles are
#     ignored.
#   - run_pending(timestamp_ms) -> int: runs the callbacks queued before the
#     call, returns how many ran. Callbacks requested while running wait for
#     the next call.
#   - len(scheduler) -> int: number of queued callbacks.
#
# class RenderLoop:
#   - start() / pause(): idempotent transitions between STOPPED and RUNNING.
#   - Invariants:
#     - At most one frame callback is outstanding.
#     - A frame delivered after pause() does no work and does not reschedule.

FrameCallback = Callable[[float], None]


class FrameScheduler:
    """Single-threaded queue of next-frame callbacks."""

    def __init__(self) -> None:
        self._pending: Dict[int, FrameCallback] = {}
        self._handles = itertools.count(1)

    def request(self, callback: FrameCallback) -> int:
        handle = next(self._handles)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._pending.pop(handle, None)

    def run_pending(self, timestamp_ms: float) -> int:
        due, self._pending = self._pending, {}
        for callback in due.values():
            callback(timestamp_ms)
        return len(due)

    def __len__(self) -> int:
        return len(self._pending)


class LoopState(enum.Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class RenderLoop:
    """
    Drives a tick function once per scheduled frame while running.

    Args:
        tick: Called with the elapsed seconds since the previous frame.
        scheduler: Source of next-frame callbacks.
        name: Used in log messages.
    """
    def __init__(self, tick: Callable[[float], None], scheduler: FrameScheduler, name: str = "loop"):
        self.tick = tick
        self.scheduler = scheduler
        self.name = name
        self.state = LoopState.STOPPED
        self.frame_handle: Optional[int] = None
        self.previous_timestamp: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self.state is LoopState.RUNNING

    def start(self) -> None:
        if self.is_running:
            return
        self.state = LoopState.RUNNING
        self.previous_timestamp = None
        self.frame_handle = self.scheduler.request(self._on_frame)
        logging.info(f"Render loop '{self.name}' started.")

    def pause(self) -> None:
        if not self.is_running:
            return
        self.state = LoopState.STOPPED
        self.scheduler.cancel(self.frame_handle)
        self.frame_handle = None
        logging.info(f"Render loop '{self.name}' paused.")

    def _on_frame(self, timestamp_ms: float) -> None:
        self.frame_handle = None
        if not self.is_running:
            return

        if self.previous_timestamp is None:
            dt = 0.0
        else:
            dt = max(timestamp_ms - self.previous_timestamp, 0.0) / 1000
        self.previous_timestamp = timestamp_ms

        self.tick(dt)

        # The tick may have paused, or paused and restarted, the loop.
        if self.is_running and self.frame_handle is None:
            self.frame_handle = self.scheduler.request(self._on_frame)
