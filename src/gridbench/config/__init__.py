"""Configuration module for gridbench."""

from .settings import (
    CASE_TIMEOUT_SECONDS,
    GLOBAL_PARAMS,
    LATEST_LIB,
    LOCK_TIMEOUT_SECONDS,
    PYTHON_EXECUTABLE,
    SHOW_PROGRESS,
    GridBenchConfig,
    get_data_dir,
    get_lib_dir,
    get_local_dir,
    get_results_dir,
)

__all__ = [
    "CASE_TIMEOUT_SECONDS",
    "GLOBAL_PARAMS",
    "LATEST_LIB",
    "LOCK_TIMEOUT_SECONDS",
    "PYTHON_EXECUTABLE",
    "SHOW_PROGRESS",
    "GridBenchConfig",
    "get_data_dir",
    "get_lib_dir",
    "get_local_dir",
    "get_results_dir",
]
