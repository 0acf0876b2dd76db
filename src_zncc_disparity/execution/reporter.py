"""
Scoped progress and timing reporter for pipeline stages.

A reporter instance is created per run and handed to the pipeline, which
brackets every stage with start()/end(). Records stay on the instance, so
concurrent runs never share timer state.
"""

import time
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

import pandas as pd

from utils.logger_config import get_logger


class StageReporter:
    """Logs stage start/end and keeps the measured durations."""

    def __init__(self, logger=None):
        self.logger = logger or get_logger(__name__)
        self._records: List[Tuple[str, float, Optional[float]]] = []
        self._current_stage: Optional[str] = None
        self._start_time: Optional[float] = None

    def start(self, stage: str) -> None:
        """Log the start of a stage and start the stopwatch."""
        if self._current_stage is not None:
            raise RuntimeError(f"Stage '{self._current_stage}' is still running")
        self._current_stage = stage
        self._start_time = time.perf_counter()
        self.logger.info(f"=== starting {stage}")

    def end(self, backend_seconds: Optional[float] = None) -> float:
        """
        Log the end of the running stage.

        Args:
            backend_seconds: Execution time reported by the compute backend,
                recorded next to the wall-clock time when given

        Returns:
            float: Wall-clock seconds since start()
        """
        if self._current_stage is None:
            raise RuntimeError("end() called without a running stage")
        elapsed = time.perf_counter() - self._start_time
        self._records.append((self._current_stage, elapsed, backend_seconds))
        self.logger.info(f"ended {self._current_stage} in {elapsed:.4f}s")
        self._current_stage = None
        self._start_time = None
        return elapsed

    def abort(self, error: BaseException) -> None:
        """Close the running stage after a failure, without recording a duration."""
        if self._current_stage is None:
            return
        self.logger.error(f"{self._current_stage} failed: {error}")
        self._current_stage = None
        self._start_time = None

    @contextmanager
    def stage(self, name: str) -> Iterator["StageReporter"]:
        """Context manager bracketing a stage with start()/end()."""
        self.start(name)
        try:
            yield self
        except BaseException as error:
            self.abort(error)
            raise
        if self._current_stage is not None:
            self.end()

    @property
    def records(self) -> List[Tuple[str, float, Optional[float]]]:
        """(stage, wall seconds, backend seconds) for every finished stage."""
        return list(self._records)

    def total_seconds(self) -> float:
        return sum(seconds for _, seconds, _ in self._records)

    def timing_frame(self) -> pd.DataFrame:
        """Finished stages as a DataFrame with one row per stage."""
        return pd.DataFrame(self._records, columns=['stage', 'wall_seconds', 'backend_seconds'])
