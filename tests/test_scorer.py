import random
import threading
import pytest
from gazereadingkit.config import Config
from gazereadingkit.eye.geometry import Direction
from gazereadingkit.fuse.rules import evaluate, match_pair
from gazereadingkit.fuse.state import ReadingScorer
from gazereadingkit.runtime.events import Fixation, Saccade

def fix(duration=200.0, t=0.0):
    return Fixation(start=t, end=t + duration, duration=duration, centroid=(100.0, 100.0))

def sac(amplitude=200.0, direction=Direction.RIGHT, t=0.0):
    return Saccade(start=t, end=t + 30, duration=30.0, start_point=(0.0, 0.0),
                   end_point=(amplitude, 0.0), amplitude=amplitude, direction=direction)

def test_forward_reading_pair():
    sc = ReadingScorer()
    assert sc.on_event(fix()).match is None
    sc.on_event(sac())
    st = sc.on_event(fix())
    assert st.confidence == pytest.approx(0.35)
    assert st.match == "forward" and st.label == "browsing"

@pytest.mark.parametrize("event,duration,kind,bonus", [
    (sac(100, Direction.LEFT), 200, "regression", 0.2),
    (sac(100, Direction.LEFT_UP), 200, "regression", 0.2),
    (sac(200, Direction.RIGHT_DOWN), 50, "weak", 0.1),
    (sac(200, Direction.RIGHT_UP), 5000, "weak", 0.1),
    (sac(200, Direction.UP), 200, "none", 0.0),
    (sac(200, Direction.DOWN), 200, "none", 0.0),
    (sac(500, Direction.RIGHT), 200, "none", 0.0),
    (sac(500, Direction.LEFT), 200, "none", 0.0),
])
def test_pattern_rule(event, duration, kind, bonus):
    sc = ReadingScorer()
    sc.on_event(event)
    st = sc.on_event(fix(duration))
    assert st.match == kind
    assert st.confidence == pytest.approx(bonus)

def test_regression_bounds_override():
    cfg = Config(regression_max_amplitude_px=100)
    assert match_pair(fix(), sac(150, Direction.LEFT), cfg) == "none"
    assert match_pair(fix(), sac(80, Direction.LEFT), cfg) == "regression"
    assert match_pair(fix(), sac(150, Direction.RIGHT), cfg) == "forward"

def test_only_saccade_then_fixation_counts():
    cfg = Config()
    assert evaluate([fix()], cfg) is None
    assert evaluate([sac(), fix(), fix()], cfg) is None
    assert evaluate([fix(), sac()], cfg) is None
    sc = ReadingScorer()
    sc.on_event(sac()); sc.on_event(sac())
    assert sc.confidence == 0.0

def test_decay_over_silent_ticks():
    sc = ReadingScorer(Config(decay_rate_per_tick=0.08))
    sc.increase(0.6)
    assert sc.status().label == "reading"
    labels = [sc.on_tick().label for _ in range(5)]
    assert sc.confidence == pytest.approx(0.2)
    assert labels == ["browsing"] * 5  # 0.52 after the first tick

    sc.decay(1.0); sc.increase(0.3)
    for _ in range(5): sc.on_tick()
    assert sc.confidence == 0.0

def test_saturation():
    sc = ReadingScorer()
    for _ in range(3): sc.increase(0.5)
    assert sc.confidence == 1.0
    sc.increase(0.4)
    assert sc.confidence == 1.0
    sc.decay(2.0); sc.decay(0.1)
    assert sc.confidence == 0.0

def test_confidence_stays_in_unit_interval():
    sc = ReadingScorer()
    rng = random.Random(7)
    for _ in range(2000):
        amt = rng.uniform(0, 0.7)
        (sc.increase if rng.random() < 0.5 else sc.decay)(amt)
        assert 0.0 <= sc.confidence <= 1.0

def test_threshold_is_strict_and_status_is_pure():
    sc = ReadingScorer(Config(confidence_threshold=0.5))
    sc.increase(0.5)
    a, b = sc.status(), sc.status()
    assert a == b and a.label == "browsing" and sc.confidence == 0.5
    sc.increase(0.01)
    assert sc.status().reading

def test_history_is_bounded():
    sc = ReadingScorer(Config(max_history=3))
    evs = [fix(t=i * 1000.0) for i in range(5)]
    for e in evs: sc.on_event(e)
    assert sc.history() == tuple(evs[-3:])
    sc.reset()
    assert sc.history() == () and sc.confidence == 0.0 and sc.status().match is None

def test_ticks_and_events_from_threads():
    sc = ReadingScorer()
    def bump():
        for _ in range(500):
            sc.on_event(sac()); sc.on_event(fix())
    def tick():
        for _ in range(500): sc.on_tick()
    ts = [threading.Thread(target=bump), threading.Thread(target=tick)]
    for t in ts: t.start()
    for t in ts: t.join()
    assert 0.0 <= sc.confidence <= 1.0
