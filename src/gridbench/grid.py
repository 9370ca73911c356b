import itertools
import logging
from typing import Any

from .benchmark import BenchmarkSpec, ParameterRow
from .config import GLOBAL_PARAMS
from .errors import InvalidParameterError

logger = logging.getLogger(__name__)


def _as_domain(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def expand_grid(bm: BenchmarkSpec, **overrides: Any) -> list[ParameterRow]:
    """Expand declared domains and overrides into an ordered grid of rows.

    Overrides replace the named parameter's domain: a list or tuple is a set
    of candidates, a scalar a single value, ``None`` drops the parameter.
    Global parameters may be overridden without being declared.

    Rows are in cartesian order over the declared parameters (first one
    varies slowest), followed by undeclared globals in the order given, and
    are filtered through ``bm.valid_params``.

    Raises:
        InvalidParameterError: an override names an unknown parameter.
    """
    for name in overrides:
        if name not in bm.parameters and name not in GLOBAL_PARAMS:
            raise InvalidParameterError(name, bm.name)

    domains: dict[str, list[Any]] = {}
    for name, default in bm.parameters.items():
        value = overrides.get(name, default)
        if value is None:
            continue
        domains[name] = _as_domain(value)
    for name, value in overrides.items():
        if name in bm.parameters or value is None:
            continue
        domains[name] = _as_domain(value)

    names = list(domains)
    rows: list[ParameterRow] = [
        dict(zip(names, combo, strict=True)) for combo in itertools.product(*domains.values())
    ]
    valid = [row for row in rows if bm.valid_params(row)]
    if len(valid) != len(rows):
        dropped = len(rows) - len(valid)
        logger.debug("%s: valid_params dropped %d of %d rows", bm.name, dropped, len(rows))
    return valid


default_params = expand_grid
