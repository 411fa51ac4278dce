from __future__ import annotations
import logging
import math
from typing import List, Optional
from ..config import Config
from ..errors import InvalidSampleError, OutOfOrderSampleError
from ..runtime.events import CurrentEvent, Event, Fixation, GazeSample, InstantClass, Saccade, WindowSnapshot
from .fixation import DispersionWindow
from .geometry import amplitude, centroid, direction

logger = logging.getLogger(__name__)

class EventSegmenter:
    """
    Turns a time-ordered gaze stream into finalized fixations and saccades.

    Each sample is classified against the dispersion window, then fed to an
    accumulator that collects points of one class. The run is flushed when the
    class changes or when it has been open longer than ``force_flush_timeout_ms``.
    A timeout restarts the same class from the current sample; a class change
    starts the new class. Runs outside the configured bounds are dropped.
    """
    def __init__(self, config: Optional[Config] = None):
        self.cfg = config or Config()
        self.window = DispersionWindow(self.cfg.window_duration_ms, self.cfg.dispersion_threshold,
                                       self.cfg.min_window_points)
        self._state: Optional[InstantClass] = None  # None == idle
        self._points: List[GazeSample] = []
        self._start: Optional[float] = None
        self._last_t: Optional[float] = None

    @property
    def state(self) -> str:
        return self._state or "idle"

    @property
    def snapshot(self) -> Optional[WindowSnapshot]:
        return self.window.last

    def ingest(self, s: GazeSample) -> Optional[Event]:
        """Classify one sample; returns the event finalized by it, if any."""
        if not math.isfinite(s.t):
            raise InvalidSampleError(f"non-finite timestamp t={s.t!r}")
        if self._last_t is not None and s.t < self._last_t:
            raise OutOfOrderSampleError(s.t, self._last_t)
        self._last_t = s.t
        cls = self.window.update(s)
        return self._step(s, cls)

    def _step(self, s: GazeSample, cls: InstantClass) -> Optional[Event]:
        if self._state is None:
            self._open(cls, s)
            return None
        timed_out = s.t - self._start > self.cfg.force_flush_timeout_ms
        if cls == self._state and not timed_out:
            self._points.append(s)
            return None
        ev = self._finalize(self._state, self._points)
        if cls != self._state:
            self._open(cls, s)
        else:
            logger.debug("forced flush of %s run after %.0f ms", cls, s.t - self._start)
            self._open(self._state, s)
        return ev

    def _open(self, cls: InstantClass, s: GazeSample):
        self._state = cls
        self._points = [s]
        self._start = s.t

    def _finalize(self, cls: InstantClass, pts: List[GazeSample]) -> Optional[Event]:
        first, last = pts[0], pts[-1]
        dur = last.t - first.t
        if cls == "fixation":
            lo, hi = self.cfg.fixation_bounds
            if not lo <= dur <= hi:
                logger.debug("discarding fixation run: %.0f ms outside [%g, %g]", dur, lo, hi)
                return None
            return Fixation(start=first.t, end=last.t, duration=dur, centroid=centroid(pts),
                            point_count=len(pts))
        amp = amplitude(first, last)
        lo, hi = self.cfg.saccade_bounds
        if not lo <= amp <= hi:
            logger.debug("discarding saccade run: amplitude %.1f outside [%g, %g]", amp, lo, hi)
            return None
        return Saccade(start=first.t, end=last.t, duration=dur,
                       start_point=(first.x, first.y), end_point=(last.x, last.y),
                       amplitude=amp, direction=direction(first, last))

    def flush(self) -> Optional[Event]:
        """Finalize the open run (end of stream); the segmenter goes idle."""
        ev = None
        if self._state is not None and self._points:
            ev = self._finalize(self._state, self._points)
        self._state = None; self._points = []; self._start = None
        return ev

    def current(self) -> CurrentEvent:
        if self._state is None:
            return CurrentEvent(state="idle")
        return CurrentEvent(state=self._state, duration=self._points[-1].t - self._start,
                            point_count=len(self._points))

    def reset(self):
        self.window.clear()
        self._state = None; self._points = []; self._start = None
        self._last_t = None
