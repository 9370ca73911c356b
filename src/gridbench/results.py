import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ExecutionFailure


@dataclass
class BenchmarkResult:
    """A successful case: per-iteration measurements plus provenance."""

    name: str
    result: list[dict[str, Any]]
    params: dict[str, Any]
    tags: dict[str, Any] = field(default_factory=dict)
    info: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] = field(default_factory=dict)
    github: dict[str, Any] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)
    output: str | None = None
    script: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "result": self.result,
            "params": self.params,
            "tags": self.tags,
            "info": self.info,
            "context": self.context,
            "github": self.github,
            "options": self.options,
            "output": self.output,
            "script": self.script,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BenchmarkResult":
        script = data.get("script")
        return cls(
            name=data.get("name", ""),
            result=list(data.get("result") or []),
            params=dict(data.get("params") or {}),
            tags=dict(data.get("tags") or {}),
            info=dict(data.get("info") or {}),
            context=dict(data.get("context") or {}),
            github=dict(data.get("github") or {}),
            options=dict(data.get("options") or {}),
            output=data.get("output"),
            script=list(script) if script is not None else None,
        )

    def to_json(self, indent: int | None = None, *, ensure_ascii: bool = False) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=ensure_ascii, default=str)

    @classmethod
    def from_json(cls, text: str) -> "BenchmarkResult":
        return cls.from_dict(json.loads(text))

    @classmethod
    def read_json(cls, path: Path) -> "BenchmarkResult":
        return cls.from_json(path.read_text(encoding="utf-8"))


@dataclass
class BenchmarkFailure:
    """A case whose child process never produced a result payload.

    ``error`` holds the raw output lines of the child; ``error_type`` is
    ``"execution"``, ``"timeout"`` or ``"environment"`` (the child was never
    started).
    """

    name: str
    params: dict[str, Any]
    error: list[str]
    error_type: str = "execution"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "params": self.params,
            "error": self.error,
            "error_type": self.error_type,
        }

    @property
    def trace(self) -> str:
        return "\n".join(self.error)

    def raise_for_error(self) -> None:
        raise ExecutionFailure(self.name, self.error, params=self.params)


RunOutcome = BenchmarkResult | BenchmarkFailure


@dataclass
class BenchmarkResults:
    """Outcomes of one grid run, in grid order."""

    results: list[Any]

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)

    def __getitem__(self, index: int) -> Any:
        return self.results[index]

    @property
    def errors(self) -> list[BenchmarkFailure]:
        return [r for r in self.results if isinstance(r, BenchmarkFailure)]

    @property
    def successes(self) -> list[BenchmarkResult]:
        return [r for r in self.results if isinstance(r, BenchmarkResult)]

    def params_summary(self) -> list[dict[str, Any]]:
        """One row per outcome: its parameters plus a ``did_error`` column."""
        rows: list[dict[str, Any]] = []
        for outcome in self.results:
            if not isinstance(outcome, (BenchmarkResult, BenchmarkFailure)):
                continue
            params = {k: v for k, v in outcome.params.items() if k != "packages"}
            params["did_error"] = isinstance(outcome, BenchmarkFailure)
            rows.append(params)
        return rows

    def to_records(self) -> list[dict[str, Any]]:
        """Flatten successful results to one record per iteration."""
        records: list[dict[str, Any]] = []
        for outcome in self.successes:
            params = {k: v for k, v in outcome.params.items() if k != "packages"}
            for iteration, row in enumerate(outcome.result, start=1):
                records.append({"name": outcome.name, "iteration": iteration, **params, **row})
        return records

    def to_dict(self) -> dict[str, Any]:
        outcomes = [r for r in self.results if isinstance(r, (BenchmarkResult, BenchmarkFailure))]
        return {"results": [r.to_dict() for r in outcomes]}
