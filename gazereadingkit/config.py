from __future__ import annotations
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from .errors import ConfigurationError

class Config(BaseModel):
    """
    Thresholds for one segmenter + scorer pair. Times are milliseconds,
    distances are in sample units (screen px unless the caller normalizes).

    Held by value inside each engine; there is no process-wide copy.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    # I-DT segmentation
    dispersion_threshold: float = Field(100.0, gt=0)
    window_duration_ms: float = Field(150.0, gt=0)
    min_window_points: int = Field(5, ge=1)
    fixation_min_duration_ms: float = Field(100.0, gt=0)
    fixation_max_duration_ms: float = Field(600.0, gt=0)
    saccade_min_amplitude_px: float = Field(30.0, gt=0)
    saccade_max_amplitude_px: float = Field(450.0, gt=0)
    force_flush_timeout_ms: float = Field(1000.0, gt=0)

    # reading confidence
    confidence_threshold: float = Field(0.55, gt=0, lt=1)
    decay_rate_per_tick: float = Field(0.08, gt=0, le=1)
    tick_interval_ms: float = Field(500.0, gt=0)
    forward_bonus: float = Field(0.35, gt=0, le=1)
    regression_bonus: float = Field(0.2, gt=0, le=1)
    weak_match_bonus: float = Field(0.1, gt=0, le=1)
    regression_min_amplitude_px: Optional[float] = Field(None, gt=0)  # None -> saccade bounds
    regression_max_amplitude_px: Optional[float] = Field(None, gt=0)
    max_history: int = Field(20, ge=2)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    @model_validator(mode="after")
    def _check_bounds(self) -> "Config":
        pairs = [
            ("fixation_min_duration_ms", "fixation_max_duration_ms"),
            ("saccade_min_amplitude_px", "saccade_max_amplitude_px"),
        ]
        for lo, hi in pairs:
            if getattr(self, lo) > getattr(self, hi):
                raise ValueError(f"{lo} must not exceed {hi}")
        rlo, rhi = self.regression_bounds
        if rlo > rhi:
            raise ValueError("regression amplitude bounds are inverted")
        return self

    @property
    def fixation_bounds(self) -> Tuple[float, float]:
        return self.fixation_min_duration_ms, self.fixation_max_duration_ms

    @property
    def saccade_bounds(self) -> Tuple[float, float]:
        return self.saccade_min_amplitude_px, self.saccade_max_amplitude_px

    @property
    def regression_bounds(self) -> Tuple[float, float]:
        lo = self.regression_min_amplitude_px
        hi = self.regression_max_amplitude_px
        return (self.saccade_min_amplitude_px if lo is None else lo,
                self.saccade_max_amplitude_px if hi is None else hi)

    def replace(self, **changes: Any) -> "Config":
        """Validated copy with some fields changed."""
        return Config(**{**self.model_dump(), **changes})

def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "config"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)

def load_config(path: str | Path | None = None) -> Config:
    """
    Read thresholds from YAML. Keys may sit at the top level or under a
    ``reading:`` section; anything not given keeps its default.
    """
    if path is None:
        return Config()
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"config file not found: {p}")
    with open(p, "r") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"cannot parse {p}: {e}") from e
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{p}: expected a mapping at the top level")
    data: Dict[str, Any] = raw.get("reading", raw)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{p}: 'reading' must be a mapping")
    return Config(**data)
