from __future__ import annotations
import logging
import threading
from collections import deque
from typing import Deque, Optional, Tuple
from ..config import Config
from ..runtime.events import Event, Fixation, MatchKind, Saccade, Status
from .rules import bonus_for, evaluate

logger = logging.getLogger(__name__)

class History:
    def __init__(self, maxlen: int = 20):
        self.events: Deque[Event] = deque(maxlen=maxlen)
    def add(self, ev: Event):
        self.events.append(ev)
    def snapshot(self) -> Tuple[Event, ...]:
        return tuple(self.events)
    def __len__(self):
        return len(self.events)

class ReadingScorer:
    """
    Reading confidence in [0, 1]: raised by reading-like saccade -> fixation
    pairs, lowered by a fixed amount on every timer tick.

    ``on_event`` and ``on_tick`` may come from different threads (sample
    callback vs. timer); both go through one lock.
    """
    def __init__(self, config: Optional[Config] = None):
        self.cfg = config or Config()
        self.hist = History(self.cfg.max_history)
        self._confidence = 0.0
        self._match: Optional[MatchKind] = None
        self._lock = threading.Lock()

    @property
    def confidence(self) -> float:
        return self._confidence

    def increase(self, amount: float):
        with self._lock:
            self._confidence = min(1.0, self._confidence + amount)

    def decay(self, amount: float):
        with self._lock:
            self._confidence = max(0.0, self._confidence - amount)

    def on_event(self, ev: Event) -> Status:
        self.hist.add(ev)
        if isinstance(ev, Fixation):
            kind = evaluate(self.hist.events, self.cfg)
            if kind is not None:
                self._match = kind
                sac: Saccade = self.hist.events[-2]
                bonus = bonus_for(kind, self.cfg)
                if bonus:
                    self.increase(bonus)
                logger.debug("pattern fix=%.0fms sac=%.0fpx %s -> %s (+%.2f, conf %.2f)",
                             ev.duration, sac.amplitude, sac.direction.value, kind, bonus,
                             self._confidence)
        return self.status()

    def on_tick(self) -> Status:
        self.decay(self.cfg.decay_rate_per_tick)
        return self.status()

    def status(self) -> Status:
        with self._lock:
            c = self._confidence
        label = "reading" if c > self.cfg.confidence_threshold else "browsing"
        return Status(label=label, confidence=c, match=self._match)

    def history(self) -> Tuple[Event, ...]:
        return self.hist.snapshot()

    def reset(self):
        with self._lock:
            self._confidence = 0.0
        self._match = None
        self.hist = History(self.cfg.max_history)
