import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from .compat import env_bool, env_float

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_LOCK_TIMEOUT_SECONDS",
    "GLOBAL_PARAMS",
    "LATEST_LIB",
    "GridBenchConfig",
    "get_data_dir",
    "get_lib_dir",
    "get_local_dir",
    "get_results_dir",
]

# Parameters that configure the child process rather than the benchmark body
GLOBAL_PARAMS: tuple[str, ...] = ("lib_path", "cpu_count", "mem_alloc")

# lib_path value meaning "whatever is installed in the running interpreter"
LATEST_LIB = "latest"

# Seconds to wait for another writer holding a result file lock
DEFAULT_LOCK_TIMEOUT_SECONDS = 60.0

# Child process execution (no timeout unless configured)
CASE_TIMEOUT_SECONDS = env_float("GRIDBENCH_TIMEOUT_SECONDS")
LOCK_TIMEOUT_SECONDS = env_float("GRIDBENCH_LOCK_TIMEOUT") or DEFAULT_LOCK_TIMEOUT_SECONDS
PYTHON_EXECUTABLE = os.getenv("GRIDBENCH_PYTHON", "").strip() or sys.executable

# Progress line on the terminal while a grid runs
SHOW_PROGRESS = env_bool("GRIDBENCH_PROGRESS", default=True)


# Directory lookups are resolved per call so a changed environment takes effect
# without reimporting the module.
def get_local_dir() -> Path:
    """Directory holding results/ and lib/ (GRIDBENCH_LOCAL_DIR, default cwd)."""
    raw = os.getenv("GRIDBENCH_LOCAL_DIR", "").strip()
    return Path(raw).expanduser() if raw else Path.cwd()


def get_results_dir() -> Path:
    return get_local_dir() / "results"


def get_lib_dir() -> Path:
    return get_local_dir() / "lib"


def get_data_dir() -> Path:
    """Source and temporary benchmark data (GRIDBENCH_DATA_DIR, default <local_dir>/data)."""
    raw = os.getenv("GRIDBENCH_DATA_DIR", "").strip()
    return Path(raw).expanduser() if raw else get_local_dir() / "data"


@dataclass(frozen=True)
class GridBenchConfig:
    results_dir: Path
    lib_dir: Path
    python: str = PYTHON_EXECUTABLE
    timeout: float | None = None
    lock_timeout: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    progress: bool = True

    @classmethod
    def from_env(cls) -> "GridBenchConfig":
        local_dir = get_local_dir()
        if local_dir.exists() and not local_dir.is_dir():
            raise RuntimeError(f"GRIDBENCH_LOCAL_DIR is not a directory: {local_dir}")
        logger.debug("Using local dir: %s", local_dir)

        return cls(
            results_dir=local_dir / "results",
            lib_dir=local_dir / "lib",
            python=os.getenv("GRIDBENCH_PYTHON", "").strip() or PYTHON_EXECUTABLE,
            timeout=env_float("GRIDBENCH_TIMEOUT_SECONDS") or CASE_TIMEOUT_SECONDS,
            lock_timeout=env_float("GRIDBENCH_LOCK_TIMEOUT") or LOCK_TIMEOUT_SECONDS,
            progress=env_bool("GRIDBENCH_PROGRESS", default=SHOW_PROGRESS),
        )
