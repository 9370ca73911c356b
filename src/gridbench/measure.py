import contextlib
import cProfile
import io
import sys
import tempfile
import time
from collections.abc import Callable
from typing import Any

import psutil


def _peak_rss_bytes() -> int | None:
    if sys.platform == "win32":
        return getattr(psutil.Process().memory_info(), "peak_wset", None)
    import resource

    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS and KiB elsewhere
    return peak if sys.platform == "darwin" else peak * 1024


def measure(fn: Callable[[], Any], *, profiling: bool = False) -> dict[str, Any]:
    """Time one call of ``fn`` and capture what it prints.

    Returns a row with ``real`` and ``process`` seconds, resident memory
    before and after the call, peak resident memory of the process, the
    captured console output and, when profiling, the path of a cProfile
    stats file.
    """
    proc = psutil.Process()
    captured = io.StringIO()
    profiler = cProfile.Profile() if profiling else None

    start_mem = proc.memory_info().rss
    start_real = time.perf_counter()
    start_cpu = time.process_time()
    try:
        with contextlib.redirect_stdout(captured), contextlib.redirect_stderr(captured):
            if profiler is not None:
                profiler.enable()
            try:
                fn()
            finally:
                if profiler is not None:
                    profiler.disable()
    except BaseException:
        # keep what the failing call printed in the failure trace
        sys.stderr.write(captured.getvalue())
        raise
    process_s = time.process_time() - start_cpu
    real_s = time.perf_counter() - start_real
    end_mem = proc.memory_info().rss

    row: dict[str, Any] = {
        "real": real_s,
        "process": process_s,
        "start_mem_bytes": start_mem,
        "end_mem_bytes": end_mem,
        "max_mem_bytes": _peak_rss_bytes(),
        "output": captured.getvalue() or None,
    }
    if profiler is not None:
        with tempfile.NamedTemporaryFile(prefix="gridbench-", suffix=".prof", delete=False) as f:
            prof_file = f.name
        profiler.dump_stats(prof_file)
        row["prof_file"] = prof_file
    return row
