"""Code that runs inside the isolated child process.

The script built for each case imports this module, applies the process
settings, calls :func:`run_bm` and prints the result between the sentinels.
:func:`run_bm` can also be called directly for an in-process run; it behaves
the same, only without the fresh interpreter.
"""

import gc
import logging
import os
from collections.abc import Mapping
from typing import Any

import pyarrow

from .benchmark import BenchmarkSpec
from .errors import InvalidParameterError
from .measure import measure
from .metadata import assemble_metadata, loaded_packages
from .results import BenchmarkResult

logger = logging.getLogger(__name__)


def set_cpu_count(cpu_count: int) -> None:
    """Size Arrow's CPU thread pool; the environment variables are set by the parent."""
    pyarrow.set_cpu_count(int(cpu_count))


def confirm_mem_alloc(mem_alloc: str) -> None:
    """Fail fast when the active Arrow memory pool is not the requested one."""
    backend = pyarrow.default_memory_pool().backend_name
    if backend != mem_alloc:
        raise RuntimeError(
            f"The memory allocator being used ({backend}) is not the same as "
            f"the one requested ({mem_alloc})."
        )


def _check_case_version(version: Any) -> int | None:
    if version is None:
        return None
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValueError(
            f"Case versions must be integers, got {version!r}; use None for no versioning"
        )
    return version


def run_iteration(bm: BenchmarkSpec, ctx: Any, *, profiling: bool = False) -> dict[str, Any]:
    bm.before_each(ctx)
    gc.collect()
    row = measure(lambda: bm.run(ctx), profiling=profiling)
    bm.after_each(ctx)
    return row


def run_bm(
    bm: BenchmarkSpec,
    *,
    n_iter: int = 1,
    profiling: bool = False,
    global_params: Mapping[str, Any] | None = None,
    **params: Any,
) -> BenchmarkResult:
    """Set up one case, run it ``n_iter`` times, tear it down and describe it.

    Raises:
        InvalidParameterError: ``params`` names a parameter the benchmark
            does not declare.
        ValueError: ``bm.case_version`` returned something other than an
            integer or None.
    """
    for name in params:
        if name not in bm.parameters:
            raise InvalidParameterError(name, bm.name)
    global_params = dict(global_params or {})

    defaults = bm.defaults()
    case_params: dict[str, Any] = {**defaults, "cpu_count": os.cpu_count(), **params}
    case_version = _check_case_version(bm.case_version(case_params))
    if case_version is not None:
        case_params["case_version"] = case_version

    logger.debug("Setting up %s with %s", bm.name, {**defaults, **params})
    ctx = bm.setup(**{**defaults, **params})
    try:
        iterations = [run_iteration(bm, ctx, profiling=profiling) for _ in range(n_iter)]
    finally:
        bm.teardown(ctx)

    cpu_count = global_params.get("cpu_count", case_params["cpu_count"])
    all_params = {**case_params, **global_params, "packages": loaded_packages()}

    metadata = assemble_metadata(
        name=bm.name,
        params=case_params,
        cpu_count=cpu_count,
        n_iter=n_iter,
    )
    return BenchmarkResult(
        name=bm.name,
        result=iterations,
        params=all_params,
        tags=metadata["tags"],
        info=metadata["info"],
        context=metadata["context"],
        github=metadata["github"],
        options=metadata["options"],
    )
