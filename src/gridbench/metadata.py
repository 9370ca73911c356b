import platform
import sys
from collections.abc import Mapping
from importlib import metadata as importlib_metadata
from typing import Any

import pyarrow

ARROW_REPOSITORY = "https://github.com/apache/arrow"


def loaded_packages() -> list[dict[str, str]]:
    """Name and version of every installed distribution with a module imported."""
    top_level = {name.partition(".")[0] for name in list(sys.modules)}
    dists: set[str] = set()
    for module, names in importlib_metadata.packages_distributions().items():
        if module in top_level:
            dists.update(names)

    packages: list[dict[str, str]] = []
    for dist in sorted(dists, key=str.lower):
        try:
            version = importlib_metadata.version(dist)
        except importlib_metadata.PackageNotFoundError:
            continue
        packages.append({"package": dist, "version": version})
    return packages


def assemble_metadata(
    *,
    name: str,
    params: Mapping[str, Any],
    cpu_count: int | None,
    n_iter: int,
) -> dict[str, Any]:
    """Build provenance metadata for one case (tags, info, context, github, options).

    ``tags`` are the case parameters with ``source`` renamed to ``dataset``
    plus the CPU count and language.
    """
    tags = dict(params)
    if "source" in tags:
        tags["dataset"] = tags.pop("source")
    tags["cpu_count"] = cpu_count
    tags["language"] = "Python"

    build = pyarrow.cpp_build_info
    info = {
        "arrow_version": build.version,
        "arrow_compiler_id": build.compiler_id,
        "arrow_compiler_version": build.compiler_version,
        "benchmark_language_version": f"Python {platform.python_version()}",
        "arrow_version_python": pyarrow.__version__,
    }
    context = {
        "arrow_compiler_flags": build.compiler_flags,
        "benchmark_language": "Python",
        "platform": platform.platform(),
    }
    github = {
        "repository": ARROW_REPOSITORY,
        "commit": build.git_id,
    }
    options = {
        "iterations": n_iter,
        # TODO: make configurable once cache dropping between iterations exists
        "drop_caches": False,
        "cpu_count": cpu_count,
    }
    return {
        "name": name,
        "tags": tags,
        "info": info,
        "context": context,
        "github": github,
        "options": options,
    }
