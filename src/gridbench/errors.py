class GridBenchError(Exception):
    """Base class for harness errors."""

    error_code = "GRIDBENCH_ERROR"


class InvalidParameterError(GridBenchError, ValueError):
    """A parameter name or value the benchmark does not declare."""

    error_code = "INVALID_PARAMETER"

    def __init__(self, name: str, benchmark: str, message: str | None = None) -> None:
        self.name = name
        self.benchmark = benchmark
        self.message = message or f"Unknown parameter '{name}' for benchmark '{benchmark}'"
        super().__init__(self.message)


class NotFoundError(GridBenchError, LookupError):
    """No cached result exists for a key."""

    error_code = "NOT_FOUND"

    def __init__(self, key: str, path: str) -> None:
        self.key = key
        self.path = path
        self.message = f"Results not found: {path}"
        super().__init__(self.message)


class ExecutionFailure(GridBenchError):
    """The child process never emitted a result payload.

    Attributes:
        name: Benchmark name.
        output: Captured output lines of the child process.
    """

    error_code = "EXECUTION_FAILURE"

    def __init__(self, name: str, output: list[str], params: dict | None = None) -> None:
        self.name = name
        self.output = output
        self.params = params or {}
        message = f"Benchmark '{name}' failed"
        tail = "\n".join(output[-20:])
        super().__init__(f"{message}:\n{tail}" if tail else message)


class MalformedPayloadError(GridBenchError):
    """The results sentinel was found but the payload is not a JSON object."""

    error_code = "MALFORMED_PAYLOAD"

    def __init__(self, payload: str, reason: str) -> None:
        self.payload = payload
        self.reason = reason
        preview = payload[:200]
        super().__init__(f"Malformed result payload ({reason}): {preview!r}")


class CaseTimeoutError(GridBenchError, TimeoutError):
    error_code = "TIMEOUT"

    def __init__(self, timeout: float, output: list[str] | None = None) -> None:
        self.timeout = timeout
        self.output = output or []
        super().__init__(f"Case timed out after {timeout:g}s")


class StoreLockTimeout(GridBenchError, TimeoutError):
    error_code = "LOCK_TIMEOUT"

    def __init__(self, lock_path: str, timeout: float) -> None:
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(
            f"Another run is writing the same result.\n"
            f"       Lock file: {lock_path}\n"
            f"       Timeout: {timeout:g}s (override with GRIDBENCH_LOCK_TIMEOUT)"
        )


class LibraryNotFoundError(GridBenchError):
    error_code = "LIBRARY_NOT_FOUND"

    def __init__(self, lib_path: str, searched: str) -> None:
        self.lib_path = lib_path
        self.searched = searched
        super().__init__(f"Library '{lib_path}' not found (looked in {searched})")


class UnknownBenchmarkError(GridBenchError, LookupError):
    error_code = "UNKNOWN_BENCHMARK"

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Unknown benchmark: {ref}")
