__version__ = "0.1.0.dev0"

from .benchmark import Benchmark, BenchContext, BenchmarkSpec
from .config import GridBenchConfig
from .coordinator import RunCoordinator
from .grid import default_params, expand_grid
from .grid_runner import GridRunner, run_benchmark, run_one
from .results import BenchmarkFailure, BenchmarkResult, BenchmarkResults
from .runtime import run_bm

__all__ = [
    "__version__",
    "Benchmark",
    "BenchContext",
    "BenchmarkSpec",
    "BenchmarkFailure",
    "BenchmarkResult",
    "BenchmarkResults",
    "GridBenchConfig",
    "GridRunner",
    "RunCoordinator",
    "default_params",
    "expand_grid",
    "run_benchmark",
    "run_bm",
    "run_one",
]
