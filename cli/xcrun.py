import functools
import os
import re
import sys
from pathlib import Path
from typing import Callable, Sequence

import click

import config_store
import environment
import launcher
import locator
import resolution
from constants import TOOL_VERSION
from errors import DescriptorUnreadable, InvalidSdkPath, MissingArgument, XcrunError
from resolution import Resolution, ResolutionContext

# Options whose value is the tool to find or run; everything after that value
# belongs to the tool, not to us.
TOOL_OPTIONS = ("-f", "-find", "--find", "-r", "-run", "--run")
# Other options that consume the following argument.
VALUE_OPTIONS = ("-sdk", "--sdk", "-toolchain", "--toolchain")

SDK_QUERIES = (
    "path",
    "version",
    "platform-path",
    "platform-version",
    "target-triple",
    "toolchain-path",
    "toolchain-version",
)


def split_forwarded_args(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Splits argv into (our args, the tool's args) at a `-f`/`-r` tool option.

    Without a tool option, argv is returned whole: click stops parsing at the
    first positional argument (the tool name) on its own.
    """
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in TOOL_OPTIONS:
            return list(argv[: i + 2]), list(argv[i + 2 :])
        if "=" in arg and arg.split("=", 1)[0] in TOOL_OPTIONS:
            return list(argv[: i + 1]), list(argv[i + 1 :])
        if arg in VALUE_OPTIONS:
            i += 2
            continue
        if arg == "--" or not arg.startswith("-"):
            break
        i += 1
    return list(argv), []


def check_selector(kind: str):
    def callback(_ctx: click.Context, _param: click.Parameter, value: str | None) -> str | None:
        if value is not None and value.startswith("-"):
            raise MissingArgument(f"{kind} flag requires an argument")
        return value

    return callback


def query_sdk(res: Resolution, query: str, env) -> str:
    if res.sdk_path is None:
        raise InvalidSdkPath("no SDK is selected; use --sdk or configure a default SDK")

    def need(value: str | None, what: str) -> str:
        if not value:
            name = res.sdk.name if res.sdk else str(res.sdk_path)
            raise DescriptorUnreadable(f"SDK '{name}' does not declare a {what}")
        return value

    match query:
        case "path":
            return str(res.sdk_path)
        case "version":
            return need(res.sdk.version if res.sdk else None, "version")
        case "platform-path":
            return str(res.developer_dir)
        case "platform-version":
            target = environment.deployment_target(res.sdk, env)
            return need(target[1] if target else None, "deployment target")
        case "target-triple":
            return environment.require_target_triple(res, env)
        case "toolchain-path":
            return need(str(res.toolchain_path) if res.toolchain_path else None, "toolchain")
        case "toolchain-version":
            tc_path = need(str(res.toolchain_path) if res.toolchain_path else None, "toolchain")
            tc = config_store.load_toolchain_descriptor(tc_path)
            if not tc.version:
                raise DescriptorUnreadable(f"toolchain '{tc.name}' does not declare a version")
            return tc.version
        case _:
            raise ValueError(f"unknown SDK query '{query}'")


def launcher_itself() -> Path:
    return Path(sys.argv[0]).resolve()


def find_or_run(ctx: ResolutionContext, tool: str, tool_args: Sequence[str]) -> int:
    res = resolution.resolve(ctx)
    skip = None if ctx.find_only else launcher_itself()
    path = locator.locate(tool, res.search_dirs, trace=ctx.info, skip=skip)
    if ctx.find_only:
        return launcher.find(path)

    launcher.run(path, tool_args, environment.compose_env(res, ctx.env), ctx)


def sdk_query_options(fn):
    for query in reversed(SDK_QUERIES):
        fn = click.option(
            f"-show-sdk-{query}",
            f"--show-sdk-{query}",
            is_flag=True,
            help=f"show selected SDK {query.replace('-', ' ')}",
        )(fn)
    return fn


def requested_sdk_query(flags: dict[str, bool]) -> str | None:
    for query in SDK_QUERIES:
        if flags.get("show_sdk_" + query.replace("-", "_")):
            return query
    return None


@click.command(
    context_settings={
        "help_option_names": ["-h", "-help", "--help"],
        # Everything after the tool name is the tool's, even if it looks like ours.
        "allow_interspersed_args": False,
    },
    epilog="The active developer directory can be set using `xcode-select`, or via the "
    "DEVELOPER_DIR environment variable.",
)
@click.option("-version", "--version", "show_version", is_flag=True, help="show the xcrun version")
@click.option("-v", "-verbose", "--verbose", is_flag=True, help="show verbose logging output")
@click.option(
    "-sdk", "--sdk", metavar="<sdk name>", callback=check_selector("sdk"),
    help="find the tool for the given SDK name or path",
)
@click.option(
    "-toolchain", "--toolchain", metavar="<name>", callback=check_selector("toolchain"),
    help="find the tool for the given toolchain name or path",
)
@click.option("-l", "-log", "--log", is_flag=True, help="show commands to be executed (with --run)")
@click.option("-f", "-find", "--find", "find_tool", metavar="<tool>",
              help="only find and print the tool path")
@click.option("-r", "-run", "--run", "run_tool", metavar="<tool>",
              help="find and execute the tool (the default behavior)")
@click.option("-n", "-no-cache", "--no-cache", is_flag=True,
              help="do not use the lookup cache (there is none)")
@click.option("-k", "-kill-cache", "--kill-cache", is_flag=True,
              help="invalidate all existing cache entries (there are none)")
@sdk_query_options
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def xcrun(
    click_ctx: click.Context,
    show_version: bool,
    verbose: bool,
    sdk: str | None,
    toolchain: str | None,
    log: bool,
    find_tool: str | None,
    run_tool: str | None,
    no_cache: bool,
    kill_cache: bool,
    args: tuple[str, ...],
    **sdk_query_flags: bool,
) -> int:
    """Find and execute the named command line tool from the active developer directory."""
    if show_version:
        click.echo(f"xcrun version {TOOL_VERSION}")
        return 0

    tool = find_tool or run_tool
    tool_args = list(args)
    if tool is None and tool_args:
        tool, *tool_args = tool_args

    ctx = ResolutionContext(
        prog="xcrun",
        sdk=sdk,
        toolchain=toolchain,
        verbose=verbose,
        logging=log,
        find_only=find_tool is not None,
    )

    if no_cache or kill_cache:
        ctx.info("there is no lookup cache; ignoring cache options")

    query = requested_sdk_query(sdk_query_flags)
    if query is not None:
        click.echo(query_sdk(resolution.resolve(ctx), query, ctx.env))
        return 0

    if tool is None:
        if verbose or log:
            raise MissingArgument("specified arguments require -r or -f arguments")
        click.echo(click_ctx.get_help())
        return 0

    return find_or_run(ctx, os.path.basename(tool), tool_args)


def report(prog: str, e: Exception) -> int:
    click.echo(f"{prog}: error: {e}", err=True)
    return 1


def run_xcrun_cli(invoked_as: str, argv: Sequence[str], **preset) -> int:
    own, forwarded = split_forwarded_args(argv)
    if forwarded:
        own = [*own, "--", *forwarded]
    try:
        rv = xcrun.main(own, prog_name=invoked_as, standalone_mode=False, default_map=preset)
    except XcrunError as e:
        return report("xcrun", e)
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        return 1
    return rv if isinstance(rv, int) else 0


_TRIPLE_PREFIX = re.compile(r"^[A-Za-z0-9_]+-apple-darwin[0-9.]*-(?P<tool>.+)$")


def run_as_tool(invoked_as: str, argv: Sequence[str]) -> int:
    """We were invoked through a symlink named after a tool: behave as that tool."""
    m = _TRIPLE_PREFIX.match(invoked_as)
    tool = m.group("tool") if m else invoked_as
    try:
        return find_or_run(ResolutionContext(prog="xcrun"), tool, argv)
    except XcrunError as e:
        report("xcrun", e)
        click.echo(f"xcrun: error: failed to execute command '{tool}'. aborting.", err=True)
        return 1


def refuse_direct_call(invoked_as: str, _argv: Sequence[str]) -> int:
    click.echo(f"{invoked_as}: error: this tool must not be called directly.", err=True)
    return 1


MULTICALL: dict[str, Callable[[str, Sequence[str]], int]] = {
    "xcrun": run_xcrun_cli,
    "xcrun_log": functools.partial(run_xcrun_cli, log=True),
    "xcrun_verbose": functools.partial(run_xcrun_cli, verbose=True),
    "xcrun_nocache": functools.partial(run_xcrun_cli, no_cache=True),
    "xcrun-tool": refuse_direct_call,
}


def main(argv: Sequence[str] | None = None):
    if argv is None:
        argv = sys.argv
    invoked_as = os.path.basename(argv[0]).removesuffix(".py")
    handler = MULTICALL.get(invoked_as, run_as_tool)
    sys.exit(handler(invoked_as, argv[1:]))


if __name__ == "__main__":
    main()
