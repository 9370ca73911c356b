import logging
from pathlib import Path
from typing import Any

from .benchmark import BenchmarkSpec
from .cache_key import build_cache_key
from .config import GLOBAL_PARAMS, GridBenchConfig
from .environment import ExecutionEnvironment, ensure_lib
from .errors import CaseTimeoutError, LibraryNotFoundError
from .framing import console_log, frame_output, parse_payload
from .process import ProcessRunner
from .results import BenchmarkFailure, BenchmarkResult, RunOutcome
from .script import build_script
from .store import ResultStore

logger = logging.getLogger(__name__)


class RunCoordinator:
    """Take one row from cache lookup to a stored result or a captured failure."""

    def __init__(
        self,
        store: ResultStore,
        runner: ProcessRunner | None = None,
        *,
        lib_dir: Path | None = None,
    ):
        self.store = store
        self.runner = runner or ProcessRunner()
        self.lib_dir = lib_dir

    @classmethod
    def from_config(cls, config: GridBenchConfig) -> "RunCoordinator":
        return cls(
            ResultStore(config.results_dir, lock_timeout=config.lock_timeout),
            ProcessRunner(python=config.python, timeout=config.timeout),
            lib_dir=config.lib_dir,
        )

    def _environment_failure(
        self, bm: BenchmarkSpec, params: dict[str, Any], error: Exception
    ) -> BenchmarkFailure:
        logger.warning("%s cannot run with %s: %s", bm.name, params, error)
        return BenchmarkFailure(
            name=bm.name,
            params=params,
            error=[f"{type(error).__name__}: {error}"],
            error_type="environment",
        )

    def run_one(
        self,
        bm: BenchmarkSpec,
        *,
        n_iter: int = 1,
        dry_run: bool = False,
        profiling: bool = False,
        read_only: bool = False,
        **row: Any,
    ) -> RunOutcome | list[str] | None:
        """Run one case of ``bm`` in a fresh interpreter, or load it from the cache.

        A bad ``cpu_count`` or a ``lib_path`` that is not installed makes a
        failure with ``error_type="environment"``; no process is started.

        Returns:
            The script lines for a dry run; the cached or freshly measured
            ``BenchmarkResult``; a ``BenchmarkFailure`` when the child never
            reported a result; ``None`` when ``read_only`` and nothing is cached.

        Raises:
            MalformedPayloadError: the child reported a result that is not a
                JSON object.
        """
        try:
            env = ExecutionEnvironment.from_params(row)
        except ValueError as e:
            return self._environment_failure(bm, dict(row), e)
        case_params = {k: v for k, v in row.items() if k not in GLOBAL_PARAMS}

        if dry_run:
            return build_script(bm, case_params, env, n_iter=n_iter, profiling=profiling)

        key = build_cache_key(bm.name, row)
        path = self.store.path_for(key)
        if self.store.exists(key):
            logger.info("Loading cached results: %s", path)
            return self.store.read(key)
        if read_only:
            logger.info("results not found: %s", path)
            return None

        try:
            lib_dir = ensure_lib(env.lib_path, lib_dir=self.lib_dir)
        except LibraryNotFoundError as e:
            return self._environment_failure(bm, {**row, **env.global_params()}, e)

        script = build_script(
            bm,
            case_params,
            env,
            lib_dir=lib_dir,
            n_iter=n_iter,
            profiling=profiling,
        )
        failure_params = {**row, **env.global_params()}

        try:
            lines = self.runner.execute(script, env.to_env(lib_dir))
        except CaseTimeoutError as e:
            logger.warning("%s timed out after %gs: %s", bm.name, e.timeout, failure_params)
            return BenchmarkFailure(
                name=bm.name,
                params=failure_params,
                error=[*e.output, str(e)],
                error_type="timeout",
            )

        framed = frame_output(lines)
        if framed.payload is None:
            logger.warning("%s failed with %s:\n%s", bm.name, failure_params, "\n".join(lines))
            return BenchmarkFailure(name=bm.name, params=failure_params, error=lines)

        result = BenchmarkResult.from_dict(parse_payload(framed.payload))
        result.output = console_log(framed)
        result.script = script
        self.store.write(key, result)
        return result
