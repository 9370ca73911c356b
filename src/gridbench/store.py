import logging
import os
import shutil
import tempfile
from pathlib import Path

import filelock

from .config import LOCK_TIMEOUT_SECONDS
from .errors import NotFoundError, StoreLockTimeout
from .results import BenchmarkResult

logger = logging.getLogger(__name__)


def atomic_write(path: Path, content: str, encoding: str = "utf-8") -> None:
    """Write ``content`` to a hidden temp file beside ``path``, then rename it over.

    Readers see either no file or the complete one.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class ResultStore:
    """One JSON file per cache key under ``base_dir``.

    ``<name>/<rest>`` is stored at ``base_dir/<name>/<rest>.json``. Files are
    write-once: ``write`` never replaces an existing result.
    """

    def __init__(self, base_dir: Path, *, lock_timeout: float = LOCK_TIMEOUT_SECONDS):
        self.base_dir = Path(base_dir)
        self.lock_timeout = lock_timeout

    def path_for(self, key: str) -> Path:
        name, _, rest = key.partition("/")
        return self.base_dir / name / f"{rest}.json"

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def read(self, key: str) -> BenchmarkResult:
        path = self.path_for(key)
        if not path.is_file():
            raise NotFoundError(key, str(path))
        return BenchmarkResult.read_json(path)

    def write(self, key: str, result: BenchmarkResult) -> bool:
        """Persist ``result`` unless a file for ``key`` already exists.

        Returns:
            True if the file was written, False if it was already present.
        """
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        lock_path = path.with_suffix(".json.lock")
        lock = filelock.FileLock(str(lock_path), timeout=self.lock_timeout)
        try:
            with lock:
                if path.exists():
                    logger.debug("Result already cached, leaving it untouched: %s", path)
                    return False
                atomic_write(path, result.to_json(indent=2) + "\n")
        except filelock.Timeout as err:
            raise StoreLockTimeout(str(lock_path), self.lock_timeout) from err
        logger.debug("Cached result: %s", path)
        return True

    def keys(self, name: str | None = None) -> list[str]:
        if not self.base_dir.is_dir():
            return []
        dirs = [self.base_dir / name] if name else sorted(self.base_dir.iterdir())
        out: list[str] = []
        for d in dirs:
            if not d.is_dir():
                continue
            out.extend(f"{d.name}/{p.stem}" for p in sorted(d.glob("*.json")))
        return out

    def clear(self, name: str | None = None) -> int:
        """Delete cached results (all, or one benchmark's). Returns files removed."""
        target = self.base_dir / name if name else self.base_dir
        removed = len(self.keys(name))
        if target.is_dir():
            shutil.rmtree(target)
        logger.info("Removed %d cached results from %s", removed, target)
        return removed
