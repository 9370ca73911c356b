"""Benchmark that does nothing but sleep, print and fail on request.

Used to exercise the harness itself: output handling, failure capture and
caching, without depending on a real workload.
"""

import sys
import time
import warnings

from ..benchmark import BenchContext, BenchmarkSpec

PLACEBO_ERROR = "something went wrong (but I knew that)"


def _setup(
    duration: float = 0.01,
    grid: bool = True,
    output_type: str | None = None,
    error_type: str | None = None,
) -> BenchContext:
    return BenchContext(
        duration=float(duration),
        grid=grid,
        output_type=output_type,
        error_type=error_type,
    )


def _run(ctx: BenchContext) -> None:
    if ctx.output_type == "message":
        print("A message", file=sys.stderr)
    elif ctx.output_type == "warning":
        warnings.warn("A warning", stacklevel=1)
    elif ctx.output_type == "print":
        print("A print")

    time.sleep(ctx.duration)

    if ctx.error_type == "raise":
        raise RuntimeError(PLACEBO_ERROR)
    if ctx.error_type == "exit":
        sys.exit(1)


placebo = BenchmarkSpec(
    name="placebo",
    setup=_setup,
    parameters={
        "duration": 0.01,
        "grid": True,
        "output_type": None,
        "error_type": None,
    },
    run=_run,
)
