"""Separate the JSON result payload from a child process's console output.

The child prints ``RESULTS_BEGIN`` on a line of its own, the JSON document,
then ``RESULTS_END``. Anything a benchmark (or an imported library) writes
to the console before or after that block is kept as the console log.
"""

import json
from collections.abc import Sequence
from typing import Any, NamedTuple

from .errors import MalformedPayloadError

RESULTS_BEGIN = "##### RESULTS FOLLOW"
RESULTS_END = "##### RESULTS END"
PARSED_MARKER = "### RESULTS HAVE BEEN PARSED ###"


class FramedOutput(NamedTuple):
    payload: str | None
    before: str
    after: str


def _find(lines: Sequence[str], sentinel: str, start: int = 0) -> int | None:
    for i in range(start, len(lines)):
        if lines[i] == sentinel:
            return i
    return None


def frame_output(lines: Sequence[str]) -> FramedOutput:
    """Split captured output lines around the result sentinels.

    ``payload`` is None when the begin sentinel never appears, which means
    the child failed before it could report. A missing end sentinel leaves
    everything after the begin sentinel in the payload.
    """
    begin = _find(lines, RESULTS_BEGIN)
    if begin is None:
        return FramedOutput(None, "\n".join(lines), "")

    end = _find(lines, RESULTS_END, begin + 1)
    if end is None:
        end = len(lines)
    return FramedOutput(
        payload="\n".join(lines[begin + 1 : end]),
        before="\n".join(lines[:begin]),
        after="\n".join(lines[end + 1 :]),
    )


def console_log(framed: FramedOutput) -> str:
    """Console output with the payload replaced by a single marker line."""
    return "\n".join((framed.before, PARSED_MARKER, framed.after)).strip()


def parse_payload(payload: str) -> dict[str, Any]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(payload, str(e)) from e
    if not isinstance(data, dict):
        raise MalformedPayloadError(payload, f"expected an object, got {type(data).__name__}")
    return data
