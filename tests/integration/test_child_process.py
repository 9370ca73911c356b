import sys
from pathlib import Path

import pytest

from gridbench.benchmarks import placebo
from gridbench.benchmarks.placebo import PLACEBO_ERROR
from gridbench.coordinator import RunCoordinator
from gridbench.errors import CaseTimeoutError
from gridbench.framing import PARSED_MARKER
from gridbench.grid_runner import GridRunner
from gridbench.process import ProcessRunner
from gridbench.results import BenchmarkFailure, BenchmarkResult
from gridbench.store import ResultStore

pytestmark = pytest.mark.integration


class CountingRunner(ProcessRunner):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.spawns = 0

    def execute(self, script_lines, env):
        self.spawns += 1
        return super().execute(script_lines, env)


@pytest.fixture
def child() -> CountingRunner:
    return CountingRunner(timeout=120)


@pytest.fixture
def coordinator(store: ResultStore, child: CountingRunner, local_dir: Path) -> RunCoordinator:
    return RunCoordinator(store, child, lib_dir=local_dir / "lib")


class TestProcessRunner:
    def test_merges_stdout_and_stderr_in_order(self) -> None:
        script = [
            "import os, sys",
            "print('one')",
            "print('two', file=sys.stderr)",
            "print(os.environ['GRIDBENCH_TEST_VAR'])",
        ]
        lines = ProcessRunner().execute(script, {"GRIDBENCH_TEST_VAR": "three"})
        assert lines == ["one", "two", "three"]

    def test_unicode_separators_do_not_split_lines(self) -> None:
        script = ["print('a\\u2028b\\u2029c\\x85d')", "print('\\u00e9')"]
        lines = ProcessRunner().execute(script, {"PYTHONIOENCODING": "ascii"})
        assert lines == ["a\u2028b\u2029c\x85d", "\u00e9"]

    def test_nonzero_exit_returns_output(self) -> None:
        lines = ProcessRunner().execute(["import sys", "print('bye')", "sys.exit(3)"], {})
        assert lines == ["bye"]

    def test_timeout_kills_child(self) -> None:
        runner = ProcessRunner(python=sys.executable, timeout=1)
        with pytest.raises(CaseTimeoutError) as exc_info:
            runner.execute(["import time", "print('started')", "time.sleep(60)"], {})
        assert exc_info.value.timeout == 1
        assert exc_info.value.output == ["started"]


class TestPlaceboInChild:
    def test_success_is_cached(
        self, coordinator: RunCoordinator, child: CountingRunner, store: ResultStore
    ) -> None:
        first = coordinator.run_one(placebo, duration=0.01, grid=True, output_type="message")
        assert isinstance(first, BenchmarkResult)
        assert first.result[0]["output"] == "A message\n"
        assert PARSED_MARKER in first.output
        assert store.exists("placebo/0.01-True-message")

        second = coordinator.run_one(placebo, output_type="message", grid=True, duration=0.01)
        assert child.spawns == 1
        assert second.tags == first.tags
        assert second.params == first.params

    def test_line_separator_in_output_and_params(
        self, coordinator: RunCoordinator, store: ResultStore
    ) -> None:
        label = "line\u2028separator"
        outcome = coordinator.run_one(placebo, duration=0, grid=label, output_type="print")
        assert isinstance(outcome, BenchmarkResult), getattr(outcome, "trace", None)
        assert outcome.params["grid"] == label
        assert store.read("placebo/0-line\u2028separator-print").params["grid"] == label

    def test_raised_error_is_captured(
        self, coordinator: RunCoordinator, store: ResultStore
    ) -> None:
        outcome = coordinator.run_one(placebo, duration=0, error_type="raise")
        assert isinstance(outcome, BenchmarkFailure)
        assert PLACEBO_ERROR in outcome.trace
        assert store.keys() == []

    def test_exit_is_captured(self, coordinator: RunCoordinator, store: ResultStore) -> None:
        outcome = coordinator.run_one(placebo, duration=0, error_type="exit")
        assert isinstance(outcome, BenchmarkFailure)
        assert outcome.error_type == "execution"
        assert store.keys() == []

    def test_undeclared_parameter_is_a_failure(self, coordinator: RunCoordinator) -> None:
        outcome = coordinator.run_one(placebo, not_a_param=1)
        assert isinstance(outcome, BenchmarkFailure)
        assert "not_a_param" in outcome.trace

    def test_global_params_applied(self, coordinator: RunCoordinator) -> None:
        outcome = coordinator.run_one(placebo, duration=0, cpu_count=1, mem_alloc="system")
        assert isinstance(outcome, BenchmarkResult), getattr(outcome, "trace", None)
        assert outcome.params["cpu_count"] == 1
        assert outcome.params["mem_alloc"] == "system"
        assert outcome.tags["cpu_count"] == 1

    def test_timeout_is_a_failure(self, store: ResultStore, local_dir: Path) -> None:
        coordinator = RunCoordinator(store, ProcessRunner(timeout=1), lib_dir=local_dir / "lib")
        outcome = coordinator.run_one(placebo, duration=30)
        assert isinstance(outcome, BenchmarkFailure)
        assert outcome.error_type == "timeout"
        assert store.keys() == []


SUMMARY_COLUMNS = {"duration", "grid", "cpu_count", "output_type", "lib_path", "did_error"}


class TestPlaceboGrid:
    def test_params_summary(self, coordinator: RunCoordinator) -> None:
        runner = GridRunner(coordinator, progress=False)
        results = runner.run_benchmark(placebo, duration=[0.01, 0.02], output_type="print")

        assert len(results) == 2
        assert results.errors == []
        summary = results.params_summary()
        assert [row["duration"] for row in summary] == [0.01, 0.02]
        for row in summary:
            assert set(row) == SUMMARY_COLUMNS
            assert row["did_error"] is False
