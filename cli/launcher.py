import os
import shlex
from pathlib import Path
from typing import Mapping, NoReturn, Sequence

import click

from errors import ExecFailed
from resolution import ResolutionContext


def shellize(cmd: Sequence[str | os.PathLike[str]]) -> str:
    return " ".join(shlex.quote(str(x)) for x in cmd)


def find(path: Path) -> int:
    click.echo(str(path))
    return 0


def run(
    path: Path, args: Sequence[str], env: Mapping[str, str], ctx: ResolutionContext
) -> NoReturn:
    """Replaces the current process with `path`; only returns by raising ExecFailed."""
    argv = [str(path), *args]
    if ctx.logging:
        click.echo(f"{ctx.prog}: info: invoking command:\n\t{shellize(argv)}", err=True)

    try:
        os.execve(path, argv, dict(env))
    except OSError as e:
        raise ExecFailed(f"can't exec '{path}' ({e.strerror or e})") from e
