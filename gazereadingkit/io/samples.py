from __future__ import annotations
import csv, json, logging, math
from pathlib import Path
from typing import Iterator, Optional, Tuple
from pydantic import ValidationError
from ..eye.segmenter import EventSegmenter
from ..runtime.events import Event, GazeContent, GazeMessage, GazeSample

logger = logging.getLogger(__name__)

class SampleIngest:
    """Leaf of the pipeline: one sample in, straight to the segmenter."""
    def __init__(self, segmenter: EventSegmenter):
        self.segmenter = segmenter
        self.dropped = 0

    def push(self, x: float, y: float, t: float) -> Optional[Event]:
        if not (math.isfinite(x) and math.isfinite(y)):
            # tracker lost the eyes for this frame
            self.dropped += 1
            logger.debug("dropping non-finite sample (%r, %r) at t=%r", x, y, t)
            return None
        return self.segmenter.ingest(GazeSample(float(x), float(y), float(t)))

def _parse_line(line: str) -> GazeContent:
    obj = json.loads(line)
    if isinstance(obj, dict) and obj.get("type") == "gaze":
        return GazeMessage.model_validate(obj).content
    return GazeContent.model_validate(obj)

def read_samples(path: str | Path, screen: Optional[Tuple[int, int]] = None) -> Iterator[GazeSample]:
    """
    Yield samples from a JSONL file (bare ``{"x","y","t"}`` objects or gaze
    wire messages) or a CSV file with ``x,y,t`` columns. ``screen`` scales
    normalized 0..1 coordinates to pixels.
    """
    p = Path(path)
    sx, sy = screen or (1, 1)
    with open(p, "r", newline="") as f:
        if p.suffix.lower() == ".csv":
            for row in csv.DictReader(f):
                yield GazeSample(float(row["x"]) * sx, float(row["y"]) * sy, float(row["t"]))
            return
        for n, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith("#"): continue
            try:
                c = _parse_line(line)
            except (json.JSONDecodeError, ValidationError) as e:
                raise ValueError(f"{p}:{n}: not a gaze sample: {e}") from e
            yield GazeSample(c.x * sx, c.y * sy, c.t)
