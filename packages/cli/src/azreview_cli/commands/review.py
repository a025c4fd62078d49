"""review command: review the pull request that triggered the current build."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape

from azreview_core.pipelines import TaskResult, set_result
from azreview_core.reviewer import run_review

console = Console()


@click.command("review")
@click.option(
    "--model",
    default=None,
    help="Chat model (or Azure deployment) name. Overrides config file.",
)
@click.option(
    "--working-dir",
    "working_dir",
    default=None,
    help="Git working copy to diff. Defaults to System.DefaultWorkingDirectory.",
)
@click.pass_context
def review_cmd(ctx, model: str | None, working_dir: str | None):
    """Review every changed file of the pull request and comment on it.

    Reads task inputs the way an Azure Pipelines agent passes them
    (INPUT_API_KEY, INPUT_AOI_ENDPOINT, ...) and falls back to plain
    environment variables (API_KEY, AOI_ENDPOINT, ...) and then to the
    configuration file.

    \b
    Inputs:
      api_key                          Required. OpenAI or Azure OpenAI key
      aoi_endpoint                     Azure OpenAI chat-completions URL
      use_azure_openai                 Use the openai SDK against aoi_endpoint
      model                            Model or deployment name
      working_dir                      Git working copy to diff
      support_self_signed_certificate  Skip TLS verification
    """
    from azreview_core.config import InputResolver, load_config

    path = (ctx.obj or {}).get("config_path", ".azreview.yml")
    defaults = load_config(path, overrides={"model": model, "working_dir": working_dir})

    summary = run_review(InputResolver(defaults=defaults))

    set_result(summary.result, summary.message)
    if summary.result is TaskResult.FAILED:
        console.print(f"[red]{escape(summary.message)}[/red]")
        ctx.exit(1)
    if summary.result is TaskResult.SUCCEEDED and summary.reviewed_files:
        console.print(
            f"[green]{len(summary.reviewed_files)} file(s) reviewed, "
            f"{len(summary.commented_files)} comment(s) posted, "
            f"{summary.deleted_comments} previous comment(s) removed.[/green]"
        )
