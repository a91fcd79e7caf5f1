import os
from pathlib import Path
from typing import Callable, Iterable

from errors import ToolNotFound


def is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK | os.X_OK)


def locate(
    name: str,
    search_dirs: Iterable[Path],
    trace: Callable[[str], None] | None = None,
    skip: Path | None = None,
) -> Path:
    """Returns `<dir>/<name>` for the first directory holding an executable `name`.

    `skip`, if given, is a resolved path that never counts as a match; the
    launcher passes itself so that a symlink to it on PATH is not re-executed.
    """
    for d in search_dirs:
        if trace:
            trace(f"checking directory '{d}' for command '{name}'...")
        candidate = d / name
        if not is_executable_file(candidate):
            continue
        if skip is not None and candidate.resolve() == skip:
            if trace:
                trace(f"skipping '{candidate}', which is this launcher")
            continue
        if trace:
            trace(f"found command's absolute path: '{candidate}'")
        return candidate

    raise ToolNotFound(f"unable to locate command '{name}'")
