from __future__ import annotations
import time
from typing import Annotated, Any, Dict, Literal, NamedTuple, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field
from ..eye.geometry import Direction

InstantClass = Literal["fixation", "saccade"]
MatchKind = Literal["forward", "regression", "weak", "none"]

class GazeSample(NamedTuple):
    x: float
    y: float
    t: float  # ms, non-decreasing

class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)

class Fixation(_Frozen):
    type: Literal["fixation"] = "fixation"
    start: float
    end: float
    duration: float
    centroid: Tuple[float, float]
    point_count: int = 0

class Saccade(_Frozen):
    type: Literal["saccade"] = "saccade"
    start: float
    end: float
    duration: float
    start_point: Tuple[float, float]
    end_point: Tuple[float, float]
    amplitude: float
    direction: Direction

Event = Annotated[Union[Fixation, Saccade], Field(discriminator="type")]

class Status(_Frozen):
    label: Literal["reading", "browsing"]
    confidence: float
    match: Optional[MatchKind] = None  # outcome of the last evaluated pair

    @property
    def reading(self) -> bool:
        return self.label == "reading"

class WindowSnapshot(_Frozen):
    """Dispersion box of the current window, for overlays."""
    min_x: float; min_y: float; max_x: float; max_y: float
    dispersion: float
    instant_class: InstantClass
    point_count: int

class CurrentEvent(_Frozen):
    state: Literal["idle", "fixation", "saccade"]
    duration: float = 0.0
    point_count: int = 0

# --- wire messages (host side; the core itself never serializes) ---

class GazeContent(BaseModel):
    x: float; y: float; t: float

class GazeMessage(BaseModel):
    type: Literal["gaze"] = "gaze"
    content: GazeContent

    def to_sample(self, screen: Optional[Tuple[int, int]] = None) -> GazeSample:
        c = self.content
        if screen:
            return GazeSample(c.x * screen[0], c.y * screen[1], c.t)
        return GazeSample(c.x, c.y, c.t)

class EventMessage(BaseModel):
    type: Literal["event"] = "event"
    ts: float = Field(default_factory=lambda: time.time())
    event: Event

class StatusMessage(BaseModel):
    type: Literal["status"] = "status"
    ts: float = Field(default_factory=lambda: time.time())
    status: Status

class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    ts: float = Field(default_factory=lambda: time.time())
    error: str
    extra: Dict[str, Any] = {}
