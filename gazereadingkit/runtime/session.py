from __future__ import annotations
import asyncio
import logging
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union
from ..config import Config
from ..eye.segmenter import EventSegmenter
from ..fuse.state import ReadingScorer
from ..io.samples import SampleIngest
from .events import Event, GazeSample, Status, WindowSnapshot

logger = logging.getLogger(__name__)

EventCallback = Callable[[Event], None]
StatusCallback = Callable[[Status], None]
WindowCallback = Callable[[WindowSnapshot], None]

class ReadingSession:
    """
    One segmenter + scorer pair for one observed party.

    Samples come in through ``ingest``; the decay timer calls ``tick``. Run
    both on the same event loop (``start`` does that for the timer) or from
    threads, in which case the scorer's lock serializes confidence updates.
    """
    def __init__(self, config: Optional[Config] = None, name: str = "session"):
        self.cfg = config or Config()
        self.name = name
        self.segmenter = EventSegmenter(self.cfg)
        self.scorer = ReadingScorer(self.cfg)
        self.ingestor = SampleIngest(self.segmenter)
        self._on_event: List[EventCallback] = []
        self._on_status: List[StatusCallback] = []
        self._on_window: List[WindowCallback] = []
        self._ticker: Optional[asyncio.Task] = None
        self.closed = False

    def subscribe(self, on_event: Optional[EventCallback] = None, on_status: Optional[StatusCallback] = None,
                  on_window: Optional[WindowCallback] = None):
        if on_event: self._on_event.append(on_event)
        if on_status: self._on_status.append(on_status)
        if on_window: self._on_window.append(on_window)

    @property
    def status(self) -> Status:
        return self.scorer.status()

    def ingest(self, x: float, y: float, t: float) -> List[Event]:
        if self.closed:
            raise RuntimeError(f"{self.name} is closed")
        dropped = self.ingestor.dropped
        ev = self.ingestor.push(x, y, t)
        if self.ingestor.dropped == dropped:
            for cb in self._on_window: cb(self.segmenter.snapshot)
        return self._deliver([ev] if ev is not None else [])

    def _deliver(self, events: List[Event]) -> List[Event]:
        for ev in events:
            for cb in self._on_event: cb(ev)
            st = self.scorer.on_event(ev)
            for cb in self._on_status: cb(st)
        return events

    def tick(self) -> Status:
        st = self.scorer.on_tick()
        for cb in self._on_status: cb(st)
        return st

    # --- timer lifecycle ---

    def start(self) -> asyncio.Task:
        """Start the decay ticker on the running loop."""
        if self.closed:
            raise RuntimeError(f"{self.name} is closed")
        if self._ticker is None or self._ticker.done():
            self._ticker = asyncio.get_running_loop().create_task(self._tick_loop())
            logger.info("%s: ticker started (%g ms)", self.name, self.cfg.tick_interval_ms)
        return self._ticker

    async def _tick_loop(self):
        period = self.cfg.tick_interval_ms / 1000.0
        while True:
            await asyncio.sleep(period)
            self.tick()

    @property
    def ticking(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    def close(self) -> List[Event]:
        """Stop the ticker and finalize the open run. Safe to call twice."""
        if self._ticker is not None:
            self._ticker.cancel()
        if self.closed:
            return []
        self.closed = True
        ev = self.segmenter.flush()
        logger.debug("%s: closed", self.name)
        return self._deliver([ev] if ev is not None else [])

    async def aclose(self) -> List[Event]:
        task = self._ticker
        out = self.close()
        if task is not None:
            # wait() leaves the ticker's cancellation behind but not our own
            await asyncio.wait({task})
        self._ticker = None
        return out

    async def __aenter__(self) -> "ReadingSession":
        self.start()
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

Output = Union[Event, Status]

def replay(samples: Iterable[GazeSample], config: Optional[Config] = None,
           session: Optional[ReadingSession] = None) -> Iterator[Tuple[float, Output]]:
    """
    Run a recorded stream through a session with ticks simulated on the
    sample clock, so the result does not depend on wall time. Yields
    ``(t, event_or_status)`` in the order they happened; the stream is
    flushed at the end.
    """
    s = session or ReadingSession(config)
    period = s.cfg.tick_interval_ms
    next_tick: Optional[float] = None
    last_t = 0.0
    for smp in samples:
        if next_tick is None:
            next_tick = smp.t + period
        while smp.t >= next_tick:
            yield next_tick, s.tick()
            next_tick += period
        last_t = smp.t
        for ev in s.ingest(smp.x, smp.y, smp.t):
            yield smp.t, ev
            yield smp.t, s.status
    for ev in s.close():
        yield last_t, ev
        yield last_t, s.status
