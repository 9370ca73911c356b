from collections.abc import Mapping
from typing import Any

from .benchmark import BenchmarkSpec
from .environment import ExecutionEnvironment
from .framing import RESULTS_BEGIN, RESULTS_END


def global_setup(env: ExecutionEnvironment, lib_dir: str | None = None) -> list[str]:
    """Process-level setup lines: import path, CPU threads, memory pool check."""
    script: list[str] = []
    if lib_dir:
        script += ["import sys", f"sys.path.insert(0, {lib_dir!r})"]
    script.append("from gridbench.runtime import confirm_mem_alloc, run_bm, set_cpu_count")
    if env.cpu_count is not None and env.cpu_count > 0:
        script.append(f"set_cpu_count({int(env.cpu_count)})")
    if env.mem_alloc:
        script.append(f"confirm_mem_alloc({env.mem_alloc!r})")
    return script


def build_script(
    bm: BenchmarkSpec,
    params: Mapping[str, Any],
    env: ExecutionEnvironment,
    *,
    lib_dir: str | None = None,
    n_iter: int = 1,
    profiling: bool = False,
) -> list[str]:
    """Python source, one line per item, that runs one case and prints its result."""
    return [
        *global_setup(env, lib_dir),
        "from gridbench.benchmarks import load_benchmark",
        "out = run_bm(",
        f"    load_benchmark({bm.import_ref!r}),",
        f"    n_iter={int(n_iter)},",
        f"    profiling={bool(profiling)!r},",
        f"    global_params={env.global_params()!r},",
        f"    **{dict(params)!r},",
        ")",
        "print()",
        f"print({RESULTS_BEGIN!r})",
        "print(out.to_json(ensure_ascii=True))",
        f"print({RESULTS_END!r})",
    ]
