from __future__ import annotations
from collections import deque
from typing import Deque, Optional
from ..runtime.events import GazeSample, InstantClass, WindowSnapshot
from .geometry import bounding_box

class DispersionWindow:
    """
    I-DT (dispersion threshold) over a sliding time window.

    The window keeps every sample with ``t >= latest.t - duration_ms``; since
    samples arrive in time order, eviction only ever touches the front.
    """
    def __init__(self, duration_ms: float = 150.0, disp_px: float = 100.0, min_points: int = 5):
        self.duration_ms = duration_ms
        self.disp_px = disp_px
        self.min_points = min_points
        self.buf: Deque[GazeSample] = deque()
        self.last: Optional[WindowSnapshot] = None

    def __len__(self) -> int:
        return len(self.buf)

    def update(self, s: GazeSample) -> InstantClass:
        self.buf.append(s)
        horizon = s.t - self.duration_ms
        while self.buf and self.buf[0].t < horizon:
            self.buf.popleft()
        return self.classify()

    def classify(self) -> InstantClass:
        x0, y0, x1, y1 = bounding_box(self.buf)
        d = (x1 - x0) + (y1 - y0)
        if len(self.buf) < self.min_points:
            cls: InstantClass = "saccade"  # not enough evidence for a fixation
        else:
            cls = "fixation" if d <= self.disp_px else "saccade"
        self.last = WindowSnapshot(min_x=x0, min_y=y0, max_x=x1, max_y=y1, dispersion=d,
                                   instant_class=cls, point_count=len(self.buf))
        return cls

    def clear(self):
        self.buf.clear()
        self.last = None
