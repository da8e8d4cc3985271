# src/Services/map_events/motion_state.py
"""
Motion State Classifier
=======================
Derives a moving / stopped / stop-transition tag for every point of an
ordered per-device stream.

Key Concepts:
- Stateful per device run: reset() must be called on the first point of
  every device
- Conservative start: a lone zero-speed sample never commits to "stopped";
  the state stays UNKNOWN until the device is seen moving
- STOP_PENDING marks the exact stop instant, STOPPED the steady state after it
- Devices without discrete start/stop signaling are classified from speed
  alone, point by point

Record codes (field 18): MOVING=0, STOPPED=1, STOP_PENDING=2, UNKNOWN → 0
"""

from enum import IntEnum
from typing import Any


class MotionState(IntEnum):
    UNKNOWN = -1
    MOVING = 0
    STOPPED = 1
    STOP_PENDING = 2

    @property
    def code(self) -> int:
        """Numeric value emitted in the record (UNKNOWN renders as moving)."""
        return int(MotionState.MOVING) if self is MotionState.UNKNOWN else int(self)


def _is_start(point: Any) -> bool:
    predicate = getattr(point, "is_start_event", None)
    if callable(predicate):
        return bool(predicate())
    return point.speed_kph > 0.0


def _is_stop(point: Any) -> bool:
    predicate = getattr(point, "is_stop_event", None)
    if callable(predicate):
        return bool(predicate())
    return point.speed_kph <= 0.0


class MotionStateClassifier:
    """
    Per-device motion state machine.

    Usage:
        classifier = MotionStateClassifier()
        classifier.reset(start_stop_supported=device.start_stop_supported)
        for point in device_points:
            state = classifier.classify(point)
    """

    def __init__(self):
        self.state = MotionState.UNKNOWN
        self.start_stop_supported = False
        self._first = True

    def reset(self, start_stop_supported: bool) -> None:
        self.state = MotionState.UNKNOWN
        self.start_stop_supported = start_stop_supported
        self._first = True

    def classify(self, point: Any) -> MotionState:
        """
        Advance the state machine with the next point of the current device.

        Args:
            point: RenderablePoint; `is_start_event()`/`is_stop_event()` are
                used when present, otherwise the speed decides

        Returns:
            MotionState: the state assigned to this point
        """
        if not self.start_stop_supported:
            # memoryless: speed decides every time
            self.state = MotionState.MOVING if point.speed_kph > 0.0 else MotionState.STOPPED
            self._first = False
            return self.state

        if self._first:
            self._first = False
            self.state = MotionState.MOVING if point.speed_kph > 0.0 else MotionState.UNKNOWN
            return self.state

        if self.state is MotionState.UNKNOWN:
            if point.speed_kph > 0.0:
                self.state = MotionState.MOVING
        elif self.state in (MotionState.STOPPED, MotionState.STOP_PENDING):
            self.state = MotionState.MOVING if _is_start(point) else MotionState.STOPPED
        else:
            self.state = MotionState.STOP_PENDING if _is_stop(point) else MotionState.MOVING

        return self.state
