"""CLI entry point for azreview.

Commands:
  review   - review the pull request of the current Azure Pipelines build
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from azreview_cli.commands.review import review_cmd

console = Console()


def _configure_logging(verbose: bool) -> None:
    from azreview_core import pipelines

    # system.debug is the agent's own "enable diagnostics" switch.
    debug = verbose or pipelines.parse_bool(pipelines.get_variable("System.Debug"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("azreview"),
    prog_name="azreview",
)
@click.option(
    "--config",
    "config_path",
    default=".azreview.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="AZREVIEW_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI code review for Azure DevOps pull requests, run as a pipeline step."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
