import logging
import sys
import threading
import time
from typing import Any

from .benchmark import BenchmarkSpec, ParameterRow
from .config import GridBenchConfig
from .coordinator import RunCoordinator
from .errors import InvalidParameterError
from .grid import expand_grid
from .results import BenchmarkFailure, BenchmarkResults

logger = logging.getLogger(__name__)


def format_progress_bar(done: int, total: int, width: int = 30) -> str:
    """``[####......]  40%``; an empty grid shows an empty bar at 0%."""
    fraction = done / total if total else 0.0
    filled = round(width * fraction)
    return f"[{'#' * filled:.<{width}}] {fraction:4.0%}"


def format_duration(seconds: float) -> str:
    mins, secs = divmod(int(seconds), 60)
    return f"{mins:02d}:{secs:02d}"


def format_eta(elapsed_seconds: float, current: int, total: int) -> str:
    if current == 0:
        return "ETA: --:--"
    remaining = (total - current) * elapsed_seconds / current
    return f"ETA: {format_duration(remaining)}"


_CLEAR_LINE = "\033[2K\r"


def _print_progress(line: str, *, final: bool = False) -> None:
    end = "\n" if final else ""
    sys.stderr.write(f"{_CLEAR_LINE}{line}{end}")
    sys.stderr.flush()


def _format_row(row: ParameterRow) -> str:
    return ", ".join(f"{k}={v}" for k, v in row.items())


class GridRunner:
    """Walk a benchmark's grid one row at a time through a RunCoordinator."""

    def __init__(self, coordinator: RunCoordinator, *, progress: bool = True):
        self.coordinator = coordinator
        self.progress = progress
        self._cancelled = threading.Event()

    @classmethod
    def from_config(cls, config: GridBenchConfig | None = None) -> "GridRunner":
        config = config or GridBenchConfig.from_env()
        return cls(RunCoordinator.from_config(config), progress=config.progress)

    def cancel(self) -> None:
        """Stop before the next row; the row in flight runs to completion."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run_benchmark(
        self,
        bm: BenchmarkSpec,
        params: list[ParameterRow] | None = None,
        *,
        n_iter: int = 1,
        dry_run: bool = False,
        profiling: bool = False,
        read_only: bool = False,
        **overrides: Any,
    ) -> BenchmarkResults:
        """Run every row of the grid and collect the outcomes in grid order.

        ``params`` is an explicit list of rows; without it the grid is
        expanded from ``bm``'s declared domains and ``overrides``. Failed rows
        do not stop the run. Read-only misses are left out of the results.

        Raises:
            InvalidParameterError: an override names an unknown parameter, or
                overrides were given together with explicit rows.
        """
        if params is not None and overrides:
            raise InvalidParameterError(
                next(iter(overrides)),
                bm.name,
                "Parameter overrides cannot be combined with explicit rows",
            )
        rows = params if params is not None else expand_grid(bm, **overrides)
        total = len(rows)
        logger.info("Running %d benchmarks with %d iterations:", total, n_iter)
        for row in rows:
            logger.info("  %s", _format_row(row))

        self._cancelled.clear()
        wall_start = time.perf_counter()
        outcomes: list[Any] = []
        n_failed = 0
        done = 0

        for i, row in enumerate(rows):
            if self._cancelled.is_set():
                logger.warning("Cancelled after %d of %d benchmarks", i, total)
                break

            if self.progress:
                elapsed = time.perf_counter() - wall_start
                line = (
                    f"{format_progress_bar(i, total)} [{i + 1}/{total}] "
                    f"{format_duration(elapsed)} {format_eta(elapsed, i, total)}"
                )
                if n_failed:
                    line += f" ({n_failed} errored)"
                _print_progress(line)

            outcome = self.coordinator.run_one(
                bm,
                n_iter=n_iter,
                dry_run=dry_run,
                profiling=profiling,
                read_only=read_only,
                **row,
            )
            done += 1
            if outcome is None:
                continue
            if isinstance(outcome, BenchmarkFailure):
                n_failed += 1
            outcomes.append(outcome)

        duration_s = time.perf_counter() - wall_start
        if self.progress:
            _print_progress(f"{format_progress_bar(done, total)} done", final=True)

        results = BenchmarkResults(outcomes)
        if dry_run:
            return results

        errors = results.errors
        if errors:
            logger.warning("%d benchmarks errored:", len(errors))
            for failure in errors:
                logger.warning("  %s", _format_row(failure.params))
        logger.info("Total run time: %s", format_duration(duration_s))
        return results


def run_benchmark(
    bm: BenchmarkSpec,
    params: list[ParameterRow] | None = None,
    **kwargs: Any,
) -> BenchmarkResults:
    """Run a grid with settings taken from the environment."""
    return GridRunner.from_config().run_benchmark(bm, params, **kwargs)


def run_one(bm: BenchmarkSpec, **kwargs: Any) -> Any:
    """Run (or load) a single case with settings taken from the environment."""
    return RunCoordinator.from_config(GridBenchConfig.from_env()).run_one(bm, **kwargs)
