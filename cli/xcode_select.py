import sys
from typing import Sequence

import click

import config_store
from constants import TOOL_VERSION
from errors import XcrunError


@click.command(
    context_settings={"help_option_names": ["-h", "-help", "--help"]},
)
@click.option(
    "-switch", "--switch", "switch_to", metavar="<darwinsdk_path>",
    help="set the path of the active developer directory",
)
@click.option("-print-path", "--print-path", is_flag=True,
              help="print the path of the active developer directory")
@click.option("-version", "--version", "show_version", is_flag=True,
              help="print the xcode-select version")
@click.pass_context
def xcode_select(
    click_ctx: click.Context, switch_to: str | None, print_path: bool, show_version: bool
) -> int:
    """Manage the active developer directory used by xcrun."""
    if switch_to is not None:
        config_store.write_selected_directory(switch_to)
        return 0
    if print_path:
        click.echo(config_store.read_selected_directory())
        return 0
    if show_version:
        click.echo(f"xcode-select version {TOOL_VERSION}")
        return 0

    click.echo(click_ctx.get_help(), err=True)
    return 1


def run_xcode_select_cli(argv: Sequence[str], prog_name: str = "xcode-select") -> int:
    try:
        rv = xcode_select.main(list(argv), prog_name=prog_name, standalone_mode=False)
    except XcrunError as e:
        click.echo(f"xcode-select: error: {e}", err=True)
        return 1
    except click.ClickException as e:
        e.show()
        return 1
    except click.Abort:
        return 1
    return rv if isinstance(rv, int) else 0


def main():
    sys.exit(run_xcode_select_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
