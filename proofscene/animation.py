"""Per-frame parameter animation.

:func:`advance_parameters` is the pure step: given the parameter table and a
frame timestamp (seconds, monotonic) it returns the next table.  The
:class:`AnimationScheduler` owns the single frame loop and keeps it running
only while some parameter animates.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from .model import AnimationDirection, Parameter, ParameterId

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameSource(Protocol):
    """Display refresh abstraction: one callback per requested frame."""

    def request(self, callback: FrameCallback) -> int: ...

    def cancel(self, handle: int) -> None: ...


class ManualFrameSource:
    """Frame source driven explicitly with :meth:`fire`; for headless runs and tests."""

    def __init__(self) -> None:
        self._pending: Dict[int, FrameCallback] = {}
        self._handles = itertools.count(1)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def request(self, callback: FrameCallback) -> int:
        handle = next(self._handles)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    def fire(self, timestamp: float) -> int:
        """Run the callbacks pending right now; those requested meanwhile wait for the next fire."""

        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(timestamp)
        return len(callbacks)


def default_speed(param: Parameter, sweep_seconds: float) -> float:
    return (param.max - param.min) / sweep_seconds


def start_direction(param: Parameter) -> AnimationDirection:
    if param.value >= param.max:
        return AnimationDirection.BACKWARD
    if param.value <= param.min:
        return AnimationDirection.FORWARD
    return param.animation_direction or AnimationDirection.FORWARD


def advance_parameters(
    parameters: Dict[ParameterId, Parameter],
    timestamp: float,
    *,
    sweep_seconds: float = 5.0,
) -> Tuple[Dict[ParameterId, Parameter], List[ParameterId]]:
    """Advance every animating parameter to ``timestamp``.

    Returns the new table (``parameters`` is not modified) and the ids of the
    parameters that hit a bound and stopped during this frame.  The first
    frame after activation only records the time baseline.
    """

    result = dict(parameters)
    finished: List[ParameterId] = []
    for pid, param in parameters.items():
        if not param.is_animating:
            continue
        elapsed = 0.0 if param.last_frame_time is None else max(0.0, timestamp - param.last_frame_time)
        speed = param.animation_speed or default_speed(param, sweep_seconds)
        value = param.value
        animating = True
        if param.animation_direction is AnimationDirection.BACKWARD:
            value -= speed * elapsed
            if value <= param.min:
                value, animating = param.min, False
        else:
            value += speed * elapsed
            if value >= param.max:
                value, animating = param.max, False
        result[pid] = dataclasses.replace(
            param,
            value=value,
            is_animating=animating,
            last_frame_time=timestamp if animating else None,
        )
        if not animating:
            finished.append(pid)
    return result, finished


class AnimationScheduler:
    """Runs ``on_frame`` once per display frame while ``is_active()`` holds.

    Call :meth:`sync` after anything that may start or stop an animation; the
    loop is requested or cancelled accordingly, so an idle scene schedules no
    frames at all.
    """

    def __init__(
        self,
        frames: FrameSource,
        is_active: Callable[[], bool],
        on_frame: FrameCallback,
    ) -> None:
        self._frames = frames
        self._is_active = is_active
        self._on_frame = on_frame
        self._handle: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def sync(self) -> None:
        active = self._is_active()
        if active and self._handle is None:
            self._handle = self._frames.request(self._tick)
            logger.debug("Animation loop started")
        elif not active and self._handle is not None:
            self._frames.cancel(self._handle)
            self._handle = None
            logger.debug("Animation loop stopped")

    def _tick(self, timestamp: float) -> None:
        self._handle = None
        self._on_frame(timestamp)
        self.sync()


__all__ = [
    "AnimationScheduler",
    "FrameCallback",
    "FrameSource",
    "ManualFrameSource",
    "advance_parameters",
    "default_speed",
    "start_direction",
]
