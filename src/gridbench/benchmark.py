from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType, SimpleNamespace
from typing import Any

Scalar = str | int | float | bool
ParameterRow = dict[str, Scalar]


def _noop(_ctx: Any) -> None:
    return None


def _accept_all(_row: Mapping[str, Any]) -> bool:
    return True


def _unversioned(_params: Mapping[str, Any]) -> int | None:
    return None


class BenchContext(SimpleNamespace):
    """Mutable state shared between setup, run and teardown of one case."""


@dataclass(frozen=True)
class BenchmarkSpec:
    """Declarative benchmark definition.

    ``parameters`` maps each case parameter to its default. A list or tuple
    default enumerates the legal choices (the first one is the default when
    the parameter is not varied); a scalar is a single-value domain; ``None``
    declares a parameter that is accepted but not part of the default grid.

    ``ref`` is the ``module:attribute`` path a child process imports to find
    this benchmark. When unset the benchmark is looked up by ``name`` in the
    built-in catalog.
    """

    name: str
    setup: Callable[..., Any]
    parameters: Mapping[str, Any] = field(default_factory=dict)
    before_each: Callable[[Any], Any] = _noop
    run: Callable[[Any], Any] = _noop
    after_each: Callable[[Any], Any] = _noop
    teardown: Callable[[Any], Any] = _noop
    valid_params: Callable[[Mapping[str, Any]], bool] = _accept_all
    case_version: Callable[[Mapping[str, Any]], int | None] = _unversioned
    ref: str | None = None

    def __post_init__(self) -> None:
        if not self.name or "/" in self.name or "\\" in self.name:
            raise ValueError(f"Benchmark name must be a single path segment: {self.name!r}")
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def import_ref(self) -> str:
        return self.ref or self.name

    def domains(self) -> dict[str, list[Any]]:
        """Declared domains in declaration order, skipping ``None`` defaults."""
        out: dict[str, list[Any]] = {}
        for name, default in self.parameters.items():
            if default is None:
                continue
            out[name] = list(default) if isinstance(default, (list, tuple)) else [default]
        return out

    def defaults(self) -> dict[str, Any]:
        """First value of each declared domain."""
        return {name: values[0] for name, values in self.domains().items() if values}


def Benchmark(name: str, setup: Callable[..., Any] | None = None, **kwargs: Any) -> BenchmarkSpec:
    """Build a BenchmarkSpec, defaulting ``setup`` to a context holding the params."""
    return BenchmarkSpec(name=name, setup=setup or BenchContext, **kwargs)
