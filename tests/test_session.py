import asyncio
import math
import pytest
from gazereadingkit.config import Config
from gazereadingkit.eye.geometry import Direction
from gazereadingkit.runtime.events import Fixation, GazeSample, Saccade, Status
from gazereadingkit.runtime.session import ReadingSession, replay

# short window so a 30 ms sweep between words reads as one saccade
CFG = Config(window_duration_ms=50, min_window_points=2, dispersion_threshold=30)

def hold(x, y, t0, t1, step=10):
    return [(x, y, t) for t in range(t0, t1 + 1, step)]

def reading_line():
    """Three words left to right: dwell, sweep right, dwell, sweep right, dwell."""
    s = hold(100, 300, 0, 200)
    s += [(150, 300, 210), (200, 300, 220), (250, 300, 230)]
    s += hold(300, 300, 240, 440)
    s += [(350, 300, 450), (400, 300, 460), (450, 300, 470)]
    s += hold(500, 300, 480, 680)
    return s

def test_reading_line_end_to_end():
    sess = ReadingSession(CFG)
    seen, statuses, windows = [], [], []
    sess.subscribe(on_event=seen.append, on_status=statuses.append, on_window=windows.append)
    for x, y, t in reading_line():
        sess.ingest(x, y, t)
    assert [e.type for e in seen] == ["fixation", "saccade", "fixation", "saccade"]
    sac = seen[1]
    assert sac.direction == Direction.RIGHT and sac.amplitude == pytest.approx(150)
    assert seen[2].duration == 150
    assert sess.status.confidence == pytest.approx(0.35)

    tail = sess.close()
    assert len(tail) == 1 and isinstance(tail[0], Fixation)
    assert sess.status.confidence == pytest.approx(0.70)
    assert sess.status.label == "reading" and sess.status.match == "forward"
    assert len(statuses) == 5 and len(windows) == len(reading_line())

def test_replay_simulates_ticks_on_sample_clock():
    samples = [GazeSample(float(x), float(y), float(t)) for x, y, t in reading_line()]
    out = list(replay(samples, CFG))
    kinds = [o.type if not isinstance(o, Status) else "status" for _, o in out]
    assert kinds == ["fixation", "status", "saccade", "status", "fixation", "status",
                     "status",  # decay tick at t=500
                     "saccade", "status", "fixation", "status"]
    assert out[6][0] == 500
    final = out[-1][1]
    assert final.confidence == pytest.approx(0.35 - 0.08 + 0.35)
    assert final.label == "reading"

def test_silence_decays_confidence():
    sess = ReadingSession(Config(decay_rate_per_tick=0.08))
    sess.scorer.increase(0.6)
    labels = [sess.tick().label for _ in range(5)]
    assert sess.status.confidence == pytest.approx(0.2)
    assert labels[0] == "browsing"

def test_dropped_samples_and_closed_session():
    sess = ReadingSession(CFG)
    windows = []
    sess.subscribe(on_window=windows.append)
    assert sess.ingest(math.nan, 10, 0) == []
    assert sess.ingest(10, math.inf, 0) == []
    assert sess.ingestor.dropped == 2 and windows == []
    sess.ingest(10, 10, 0)
    assert len(windows) == 1
    assert sess.close() == [] and sess.close() == []
    with pytest.raises(RuntimeError):
        sess.ingest(10, 10, 20)

def test_independent_sessions():
    a, b = ReadingSession(CFG), ReadingSession(CFG)
    for x, y, t in reading_line():
        a.ingest(x, y, t)
    a.close()
    assert a.status.confidence > 0 and b.status.confidence == 0
    b.ingest(0, 0, 0)  # b's clock is its own

async def test_ticker_runs_and_stops():
    sess = ReadingSession(Config(tick_interval_ms=10, decay_rate_per_tick=0.05))
    sess.scorer.increase(1.0)
    async with sess:
        assert sess.ticking
        await asyncio.sleep(0.1)
    after = sess.status.confidence
    assert after < 1.0
    assert not sess.ticking and sess.closed
    await asyncio.sleep(0.05)
    assert sess.status.confidence == after
    with pytest.raises(RuntimeError):
        sess.start()

async def test_start_is_idempotent():
    sess = ReadingSession(Config(tick_interval_ms=1000))
    t1 = sess.start()
    assert sess.start() is t1
    await sess.aclose()
    assert t1.cancelled()

async def test_cancelling_aclose_caller_propagates():
    sess = ReadingSession(Config(tick_interval_ms=1000))
    ticker = sess.start()
    closer = asyncio.create_task(sess.aclose())
    await asyncio.sleep(0)
    closer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await closer
    assert sess.closed
    await asyncio.sleep(0)
    assert ticker.cancelled()
