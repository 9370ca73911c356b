"""Benchmark catalog.

A child process finds its benchmark again through :func:`load_benchmark`,
either by catalog name or by a ``module:attribute`` reference.
"""

import importlib

from ..benchmark import BenchmarkSpec
from ..errors import UnknownBenchmarkError
from .placebo import placebo

CATALOG: dict[str, BenchmarkSpec] = {
    placebo.name: placebo,
}


def load_benchmark(ref: str) -> BenchmarkSpec:
    """Resolve a catalog name or ``package.module:attribute`` to a benchmark.

    Raises:
        UnknownBenchmarkError: nothing matches ``ref``.
    """
    if ref in CATALOG:
        return CATALOG[ref]

    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise UnknownBenchmarkError(ref)
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        raise UnknownBenchmarkError(ref) from e

    bm = getattr(module, attr, None)
    if not isinstance(bm, BenchmarkSpec):
        raise UnknownBenchmarkError(ref)
    return bm


__all__ = ["CATALOG", "load_benchmark", "placebo"]
