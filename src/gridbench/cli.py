import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import click
import yaml
from dotenv import load_dotenv

from .benchmarks import CATALOG, load_benchmark
from .config import GridBenchConfig
from .errors import GridBenchError
from .grid_runner import GridRunner
from .store import ResultStore

logger = logging.getLogger(__name__)


def _load_env() -> None:
    dotenv_path = os.getenv("GRIDBENCH_DOTENV_PATH", "").strip()
    if not dotenv_path:
        load_dotenv()
        return
    path = Path(dotenv_path).expanduser()
    if path.exists():
        load_dotenv(path)
    else:
        click.echo(f"Warning: GRIDBENCH_DOTENV_PATH does not exist: {dotenv_path}", err=True)
        load_dotenv()


def parse_value(text: str) -> Any:
    """Parse a command-line parameter value as int, float, bool or string."""
    text = text.strip()
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


def parse_param_options(options: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=v1,v2`` options into overrides; one value stays a scalar."""
    overrides: dict[str, Any] = {}
    for option in options:
        name, sep, raw = option.partition("=")
        name = name.strip()
        if not sep or not name:
            raise click.BadParameter(f"expected key=value, got {option!r}", param_hint="-p")
        values = [parse_value(v) for v in raw.split(",")]
        overrides[name] = values[0] if len(values) == 1 else values
    return overrides


def _load_params_file(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.BadParameter("must map parameter names to values", param_hint="--params-file")
    return data


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Run parameterized benchmarks in isolated interpreters and cache the results."""
    _load_env()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


@main.command("run")
@click.argument("name")
@click.option(
    "-p",
    "--param",
    "param_options",
    multiple=True,
    help="Override a parameter domain: key=v1,v2 (repeatable)",
)
@click.option(
    "--params-file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file mapping parameter names to a value or list of values",
)
@click.option("--n-iter", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--dry-run", is_flag=True, help="Print the generated scripts without running")
@click.option("--read-only", is_flag=True, help="Only load cached results, never run")
@click.option("--profiling", is_flag=True, help="Record a cProfile stats file per iteration")
@click.option("--timeout", default=None, type=float, help="Seconds before a case is killed")
@click.option(
    "--progress/--no-progress",
    default=None,
    help="Show a progress line (default: GRIDBENCH_PROGRESS)",
)
@click.option(
    "--summary-json",
    default=None,
    type=click.Path(dir_okay=False),
    help="Write results and the parameter summary to this file",
)
def run_command(
    name: str,
    param_options: tuple[str, ...],
    params_file: str | None,
    n_iter: int,
    dry_run: bool,
    read_only: bool,
    profiling: bool,
    timeout: float | None,
    progress: bool | None,
    summary_json: str | None,
) -> None:
    """Run benchmark NAME (catalog name or module:attribute) over its grid."""
    overrides = _load_params_file(params_file) if params_file else {}
    overrides.update(parse_param_options(param_options))

    try:
        bm = load_benchmark(name)
        config = GridBenchConfig.from_env()
        if timeout is not None:
            config = replace(config, timeout=timeout)
        if progress is not None:
            config = replace(config, progress=progress)

        runner = GridRunner.from_config(config)
        results = runner.run_benchmark(
            bm,
            n_iter=n_iter,
            dry_run=dry_run,
            profiling=profiling,
            read_only=read_only,
            **overrides,
        )
    except GridBenchError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if dry_run:
        for script in results:
            click.echo("\n".join(script))
            click.echo("")
        return

    click.echo(f"{len(results.successes)} succeeded, {len(results.errors)} errored")
    for row in results.params_summary():
        click.echo(f"  {json.dumps(row, default=str)}")

    if summary_json:
        out = Path(summary_json)
        out.parent.mkdir(parents=True, exist_ok=True)
        payload = {**results.to_dict(), "params_summary": results.params_summary()}
        with out.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
        click.echo(f"Summary saved to: {out}")


@main.command("list")
def list_command() -> None:
    """List built-in benchmarks and their parameter domains."""
    for bm in CATALOG.values():
        click.echo(bm.name)
        for param, default in bm.parameters.items():
            click.echo(f"  {param}: {default!r}")


@main.command("clean")
@click.argument("name", required=False)
def clean_command(name: str | None) -> None:
    """Remove cached results, for every benchmark or only NAME."""
    config = GridBenchConfig.from_env()
    removed = ResultStore(config.results_dir).clear(name)
    click.echo(f"Removed {removed} cached results")


@main.command("show")
@click.argument("key")
def show_command(key: str) -> None:
    """Print the cached result for KEY (<benchmark>/<remainder>)."""
    config = GridBenchConfig.from_env()
    try:
        result = ResultStore(config.results_dir).read(key)
    except GridBenchError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(result.to_json(indent=2))


if __name__ == "__main__":
    main()
