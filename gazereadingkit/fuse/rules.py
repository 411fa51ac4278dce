from __future__ import annotations
from typing import Optional, Sequence
from ..config import Config
from ..eye.geometry import LEFTWARD, RIGHTWARD
from ..runtime.events import Event, Fixation, MatchKind, Saccade

def _within(v: float, bounds) -> bool:
    return bounds[0] <= v <= bounds[1]

def match_pair(fix: Fixation, sac: Saccade, cfg: Config) -> MatchKind:
    """
    Classify a saccade -> fixation pair. Checked in order:
    forward (left-to-right reading), regression (re-read), weak rightward, none.
    """
    dur_ok = _within(fix.duration, cfg.fixation_bounds)
    fwd_amp = _within(sac.amplitude, cfg.saccade_bounds)
    if dur_ok and sac.direction in RIGHTWARD and fwd_amp:
        return "forward"
    if dur_ok and sac.direction in LEFTWARD and _within(sac.amplitude, cfg.regression_bounds):
        return "regression"
    if sac.direction in RIGHTWARD and fwd_amp:
        return "weak"
    return "none"

def evaluate(history: Sequence[Event], cfg: Config) -> Optional[MatchKind]:
    """Match the newest entry against the one before it; None if there is no pair."""
    if len(history) < 2:
        return None
    fix, sac = history[-1], history[-2]
    if not isinstance(fix, Fixation) or not isinstance(sac, Saccade):
        return None
    return match_pair(fix, sac, cfg)

def bonus_for(kind: Optional[MatchKind], cfg: Config) -> float:
    return {"forward": cfg.forward_bonus,
            "regression": cfg.regression_bonus,
            "weak": cfg.weak_match_bonus}.get(kind, 0.0)
