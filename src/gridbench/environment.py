import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import GLOBAL_PARAMS, LATEST_LIB, get_lib_dir
from .errors import LibraryNotFoundError

logger = logging.getLogger(__name__)

# Thread-pool sizes read by common numeric runtimes in the child
THREAD_COUNT_VARS = (
    "OMP_NUM_THREADS",
    "MKL_NUM_THREADS",
    "OPENBLAS_NUM_THREADS",
    "NUMEXPR_NUM_THREADS",
    "GRIDBENCH_CPU_COUNT",
)
# Arrow picks its default memory pool from this at import time
MEMORY_POOL_VAR = "ARROW_DEFAULT_MEMORY_POOL"


@dataclass(frozen=True)
class ExecutionEnvironment:
    """Global parameters of one case, projected onto the child's environment.

    ``lib_path`` is ``"latest"`` for the installed library or a directory
    prepended to the child's import path.
    """

    lib_path: str = LATEST_LIB
    cpu_count: int | None = None
    mem_alloc: str | None = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ExecutionEnvironment":
        """Pick the global parameters out of a row.

        Raises:
            ValueError: ``cpu_count`` is not an integer.
        """
        cpu_count = params.get("cpu_count")
        if cpu_count is not None:
            try:
                cpu_count = int(cpu_count)
            except (TypeError, ValueError):
                raise ValueError(f"cpu_count must be an integer, got {cpu_count!r}") from None
        return cls(
            lib_path=str(params.get("lib_path") or LATEST_LIB),
            cpu_count=cpu_count,
            mem_alloc=params.get("mem_alloc") or None,
        )

    def global_params(self) -> dict[str, Any]:
        """Non-empty global parameters; ``lib_path`` is always present."""
        values = {
            "lib_path": self.lib_path,
            "cpu_count": self.cpu_count,
            "mem_alloc": self.mem_alloc,
        }
        return {k: values[k] for k in GLOBAL_PARAMS if values[k] is not None}

    def to_env(self, lib_dir: str | None = None) -> dict[str, str]:
        """Environment variables for the child process.

        Args:
            lib_dir: Resolved library directory, if one should be put first on
                the import path.
        """
        env: dict[str, str] = {}
        if lib_dir:
            existing = os.environ.get("PYTHONPATH", "")
            env["PYTHONPATH"] = os.pathsep.join(p for p in (lib_dir, existing) if p)
        if self.cpu_count is not None and self.cpu_count > 0:
            for var in THREAD_COUNT_VARS:
                env[var] = str(self.cpu_count)
        if self.mem_alloc:
            env[MEMORY_POOL_VAR] = self.mem_alloc
        return env


def ensure_lib(lib_path: str | None, *, lib_dir: Path | None = None) -> str | None:
    """Resolve a ``lib_path`` parameter to a directory for the child's import path.

    ``"latest"`` (or nothing) means the installed library and resolves to
    ``None``. An existing directory is used as is; anything else names a
    version installed under ``<local_dir>/lib/<version>``.

    Raises:
        LibraryNotFoundError: the version is not installed locally.
    """
    if not lib_path or lib_path == LATEST_LIB:
        return None

    candidate = Path(lib_path).expanduser()
    if candidate.is_dir():
        return str(candidate.resolve())

    base = lib_dir or get_lib_dir()
    versioned = base / lib_path
    if versioned.is_dir():
        logger.debug("Using library %s from %s", lib_path, versioned)
        return str(versioned.resolve())
    raise LibraryNotFoundError(lib_path, str(base))
