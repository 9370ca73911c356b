from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from gridbench.benchmark import Benchmark, BenchmarkSpec
from gridbench.config import GridBenchConfig
from gridbench.coordinator import RunCoordinator
from gridbench.framing import RESULTS_BEGIN, RESULTS_END
from gridbench.results import BenchmarkResult
from gridbench.store import ResultStore

_ENV_VARS = (
    "GRIDBENCH_DATA_DIR",
    "GRIDBENCH_TIMEOUT_SECONDS",
    "GRIDBENCH_LOCK_TIMEOUT",
    "GRIDBENCH_PYTHON",
    "GRIDBENCH_PROGRESS",
    "GRIDBENCH_DOTENV_PATH",
)


@pytest.fixture(autouse=True)
def local_dir(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point GRIDBENCH_LOCAL_DIR at a per-test directory."""
    base = tmp_path_factory.mktemp("local")
    monkeypatch.setenv("GRIDBENCH_LOCAL_DIR", str(base))
    return base


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def store(local_dir: Path) -> ResultStore:
    return ResultStore(local_dir / "results", lock_timeout=5)


def _make_result(name: str = "toy", **params: Any) -> BenchmarkResult:
    return BenchmarkResult(
        name=name,
        result=[{"real": 0.5, "process": 0.4, "output": None}],
        params={**params, "lib_path": "latest", "packages": []},
        tags={**params, "cpu_count": 4, "language": "Python"},
        options={"iterations": 1, "drop_caches": False, "cpu_count": 4},
    )


def _success_output(result: BenchmarkResult) -> list[str]:
    return [
        "loading data",
        "",
        RESULTS_BEGIN,
        result.to_json(),
        RESULTS_END,
        "exiting",
    ]


class FakeRunner:
    """Stands in for ProcessRunner; records every spawn instead of starting one."""

    def __init__(self, output: Sequence[str] = (), error: Exception | None = None):
        self.output = list(output)
        self.error = error
        self.calls: list[tuple[list[str], dict[str, str]]] = []

    @property
    def spawns(self) -> int:
        return len(self.calls)

    def execute(self, script_lines: Sequence[str], env: Mapping[str, str]) -> list[str]:
        self.calls.append((list(script_lines), dict(env)))
        if self.error is not None:
            raise self.error
        return list(self.output)


@pytest.fixture
def make_result():
    return _make_result


@pytest.fixture
def success_output():
    return _success_output


@pytest.fixture
def fake_runner():
    return FakeRunner


@pytest.fixture
def toy_bm() -> BenchmarkSpec:
    return Benchmark(
        "toy",
        parameters={"x": [1, 2], "mode": ("fast", "slow")},
    )


@pytest.fixture
def coordinator_factory(store: ResultStore, local_dir: Path):
    def _make(runner: FakeRunner) -> RunCoordinator:
        return RunCoordinator(store, runner, lib_dir=local_dir / "lib")  # type: ignore[arg-type]

    return _make


@pytest.fixture
def config(local_dir: Path) -> GridBenchConfig:
    return GridBenchConfig(
        results_dir=local_dir / "results",
        lib_dir=local_dir / "lib",
        timeout=60,
        lock_timeout=5,
        progress=False,
    )
