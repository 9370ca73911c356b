import contextlib
import logging
import os
import subprocess  # nosec B404 - runs the harness's own interpreter
from collections.abc import Mapping, Sequence

import psutil

from .config import PYTHON_EXECUTABLE
from .errors import CaseTimeoutError

logger = logging.getLogger(__name__)


def kill_process_tree(pid: int, *, grace: float = 3.0) -> None:
    """Kill ``pid`` and every process it spawned, waiting up to ``grace`` seconds."""
    try:
        root = psutil.Process(pid)
        procs = [*root.children(recursive=True), root]
    except psutil.Error:
        return

    for proc in procs:
        with contextlib.suppress(psutil.Error):
            proc.kill()
    _, alive = psutil.wait_procs(procs, timeout=grace)
    for proc in alive:
        logger.warning("Process %s survived kill", proc.pid)


def _split_output(text: str | None) -> list[str]:
    # "\n" only: U+2028, U+2029 and U+0085 can sit inside a payload line
    if not text:
        return []
    lines = [line.removesuffix("\r") for line in text.split("\n")]
    if lines[-1] == "":
        lines.pop()
    return lines


class ProcessRunner:
    """Run a Python script in a fresh interpreter and capture its console.

    The script is fed on stdin; stdout and stderr are merged so the output
    keeps the order the child wrote it in.
    """

    def __init__(
        self,
        *,
        python: str = PYTHON_EXECUTABLE,
        timeout: float | None = None,
        cwd: str | None = None,
    ):
        self.python = python
        self.timeout = timeout
        self.cwd = cwd

    def _child_env(self, overrides: Mapping[str, str]) -> dict[str, str]:
        env = dict(os.environ)
        env.update(overrides)
        env["PYTHONUNBUFFERED"] = "1"
        env["PYTHONIOENCODING"] = "utf-8"
        return env

    def execute(self, script_lines: Sequence[str], env: Mapping[str, str]) -> list[str]:
        """Run ``script_lines`` and return the combined output as lines.

        Raises:
            CaseTimeoutError: the child outlived ``timeout``; it is killed
                together with its own children and the partial output is
                attached to the error.
        """
        script = "\n".join(script_lines) + "\n"
        cmd = [self.python, "-"]
        logger.debug("Starting child: %s (env overrides: %s)", " ".join(cmd), dict(env))
        proc = subprocess.Popen(  # nosec B603 - trusted command
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=self.cwd,
            env=self._child_env(env),
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        try:
            stdout, _ = proc.communicate(script, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            kill_process_tree(proc.pid)
            stdout, _ = proc.communicate()
            raise CaseTimeoutError(e.timeout, _split_output(stdout)) from None

        if proc.returncode != 0:
            logger.debug("Child exited with status %s", proc.returncode)
        return _split_output(stdout)
