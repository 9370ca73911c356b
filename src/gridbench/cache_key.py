from collections.abc import Mapping
from typing import Any

# Remainder used for a row without any parameters
EMPTY_ROW_KEY = "default"

_SEPARATORS = ("/", "\\")


def _key_part(value: Any) -> str:
    text = str(value).strip() if isinstance(value, str) else str(value)
    for sep in _SEPARATORS:
        text = text.replace(sep, "_")
    return text


def build_cache_key(name: str, row: Mapping[str, Any]) -> str:
    """Derive ``<name>/<v1>-<v2>-...`` from a row, values ordered by parameter name.

    ``None`` values are left out, strings are stripped, and path separators in
    values become ``_`` so the remainder is always one file name.
    """
    parts = [_key_part(row[k]) for k in sorted(row) if row[k] is not None]
    return f"{name}/{'-'.join(parts) or EMPTY_ROW_KEY}"
