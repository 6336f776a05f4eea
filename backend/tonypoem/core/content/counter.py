"""
Impact counter animation.

Counters sit at zero until the counter region is first at least half
visible, then count up to their targets over a fixed duration:

    Idle --observe(ratio >= threshold)--> Animating

The trigger fires once; the observer is disconnected immediately and later
visibility changes are ignored. Each frame shows floor(target * fraction)
with the elapsed fraction clamped to [0, 1]; frames stop being requested
once the fraction reaches 1.
"""

import math
import time
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

# Targets shown in the About page impact section
DEFAULT_TARGETS: Dict[str, int] = {
    "youthsImpacted": 500,
    "volunteers": 150,
    "programs": 50,
}

COUNTER_LABELS: Dict[str, str] = {
    "youthsImpacted": "Youths Impacted",
    "volunteers": "Volunteers",
    "programs": "Programs",
}


class CounterState(str, Enum):
    IDLE = "idle"
    ANIMATING = "animating"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ImpactCounterAnimator:
    """Time-driven interpolation of a set of counters toward their targets."""

    def __init__(
        self,
        targets: Optional[Mapping[str, int]] = None,
        duration_ms: float = 2000.0,
        threshold: float = 0.5,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        self.targets: Dict[str, int] = dict(DEFAULT_TARGETS if targets is None else targets)
        self.duration_ms = duration_ms
        self.threshold = threshold
        self._clock = clock
        self.state = CounterState.IDLE
        self.observing = True
        self._start: Optional[float] = None
        self._fraction = 0.0

    def observe(self, visible_ratio: float, now: Optional[float] = None) -> bool:
        """
        Report how much of the counter region is visible.

        Returns True only on the call that starts the animation.
        """
        if not self.observing or self.state is not CounterState.IDLE:
            return False
        if visible_ratio < self.threshold:
            return False
        self.observing = False
        self.state = CounterState.ANIMATING
        self._start = self._clock() if now is None else now
        return True

    def frame(self, now: Optional[float] = None) -> Dict[str, int]:
        """Values to display on the animation frame at time `now`."""
        if self.state is CounterState.IDLE or self._start is None:
            return self.displayed_at(0.0)
        now = self._clock() if now is None else now
        self._fraction = min(max((now - self._start) / self.duration_ms, 0.0), 1.0)
        return self.displayed_at(self._fraction)

    def displayed_at(self, fraction: float) -> Dict[str, int]:
        fraction = min(max(fraction, 0.0), 1.0)
        return {name: math.floor(target * fraction) for name, target in self.targets.items()}

    @property
    def fraction(self) -> float:
        return self._fraction

    @property
    def wants_frame(self) -> bool:
        """Whether another animation frame should be requested."""
        return self.state is CounterState.ANIMATING and self._fraction < 1.0

    def snapshot(self) -> Dict[str, object]:
        """Template context: state, labels, targets and current values."""
        return {
            "state": self.state.value,
            "duration_ms": int(self.duration_ms),
            "threshold": self.threshold,
            "counters": [
                {
                    "key": name,
                    "label": COUNTER_LABELS.get(name, name),
                    "target": target,
                    "value": value,
                }
                for (name, target), value in zip(
                    self.targets.items(), self.displayed_at(self._fraction).values()
                )
            ],
        }
