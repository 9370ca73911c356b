import json
from pathlib import Path
from unittest.mock import patch

import filelock
import pytest

from gridbench.errors import NotFoundError, StoreLockTimeout
from gridbench.results import BenchmarkResult
from gridbench.store import ResultStore, atomic_write


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        atomic_write(target, '{"a": 1}')
        assert target.read_text(encoding="utf-8") == '{"a": 1}'
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]

    def test_failed_replace_leaves_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "out.json"
        with patch("gridbench.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write(target, "x")
        assert not target.exists()
        assert list(tmp_path.iterdir()) == []


class TestResultStore:
    def test_path_layout(self, tmp_path: Path) -> None:
        store = ResultStore(tmp_path)
        assert store.path_for("placebo/0.01-True") == tmp_path / "placebo" / "0.01-True.json"

    def test_read_missing_raises(self, store: ResultStore) -> None:
        assert not store.exists("toy/1")
        with pytest.raises(NotFoundError) as exc_info:
            store.read("toy/1")
        assert exc_info.value.key == "toy/1"
        assert exc_info.value.path.endswith("1.json")

    def test_write_then_read_round_trips(self, store: ResultStore, make_result) -> None:
        result = make_result(x=1)
        result.output = "hello\n### RESULTS HAVE BEEN PARSED ###"
        result.script = ["print(1)"]

        assert store.write("toy/1", result) is True
        assert store.exists("toy/1")
        assert store.read("toy/1") == result

    def test_file_is_json_document(self, store: ResultStore, make_result) -> None:
        store.write("toy/1", make_result(x=1))
        data = json.loads(store.path_for("toy/1").read_text(encoding="utf-8"))
        assert data["name"] == "toy"
        assert data["params"]["x"] == 1
        assert set(data) >= {"result", "tags", "info", "context", "github", "options"}

    def test_existing_file_is_never_overwritten(self, store: ResultStore, make_result) -> None:
        first = make_result(x=1)
        second = make_result(x=2)
        assert store.write("toy/1", first) is True
        assert store.write("toy/1", second) is False
        assert store.read("toy/1").params["x"] == 1

    def test_creates_parent_directories(self, tmp_path: Path, make_result) -> None:
        store = ResultStore(tmp_path / "deep" / "results")
        store.write("toy/1", make_result())
        assert (tmp_path / "deep" / "results" / "toy" / "1.json").is_file()

    def test_lock_timeout_raises(self, store: ResultStore, make_result) -> None:
        with patch("gridbench.store.filelock.FileLock") as lock_cls:
            lock_cls.return_value.__enter__.side_effect = filelock.Timeout("x.lock")
            with pytest.raises(StoreLockTimeout) as exc_info:
                store.write("toy/1", make_result())
        assert exc_info.value.lock_path.endswith("1.json.lock")
        assert not store.exists("toy/1")

    def test_keys_and_clear(self, store: ResultStore, make_result) -> None:
        store.write("toy/1", make_result(x=1))
        store.write("toy/2", make_result(x=2))
        store.write("other/default", make_result("other"))

        assert store.keys() == ["other/default", "toy/1", "toy/2"]
        assert store.keys("toy") == ["toy/1", "toy/2"]

        assert store.clear("toy") == 2
        assert store.keys() == ["other/default"]
        assert store.clear() == 1
        assert store.keys() == []

    def test_keys_on_missing_directory(self, tmp_path: Path) -> None:
        assert ResultStore(tmp_path / "missing").keys() == []


class TestBenchmarkResultJson:
    def test_from_dict_tolerates_missing_sections(self) -> None:
        result = BenchmarkResult.from_dict({"name": "bm", "result": [], "params": {}})
        assert result.tags == {}
        assert result.script is None
