import time
from collections import deque
from typing import Callable, Optional


class FPSTracker:
    """Rolling frames-per-second over the last `window` frames."""
    def __init__(self, window: int = 30, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._times = deque(maxlen=window)
        self.fps = 0.0

    def update(self, now: Optional[float] = None):
        """Record a frame."""
        self._times.append(self._clock() if now is None else now)
        if len(self._times) > 1:
            elapsed = self._times[-1] - self._times[0]
            self.fps = (len(self._times) - 1) / elapsed if elapsed > 0 else 0.0

    def reset(self):
        self._times.clear()
        self.fps = 0.0

    def get_fps(self) -> float:
        """Get the current calculated FPS."""
        return self.fps
