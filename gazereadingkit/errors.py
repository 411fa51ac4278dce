from __future__ import annotations

class GazeReadingError(Exception):
    """Base class for everything this package raises on purpose."""

class ConfigurationError(GazeReadingError, ValueError):
    """Invalid thresholds or capacities; the engine is not built."""

class OutOfOrderSampleError(GazeReadingError, ValueError):
    def __init__(self, t: float, last_t: float):
        super().__init__(f"sample at t={t} precedes last ingested sample at t={last_t}")
        self.t = t
        self.last_t = last_t

class InvalidSampleError(GazeReadingError, ValueError):
    """A sample the pipeline cannot place in time (non-finite timestamp)."""
