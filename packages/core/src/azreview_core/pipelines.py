"""Azure Pipelines host adapter.

The agent exposes everything this task needs through the process
environment:
  - pipeline variables such as ``Build.Reason`` become ``BUILD_REASON``
  - task inputs such as ``api_key`` become ``INPUT_API_KEY``

Results and secret masking go back to the agent as ``##vso[...]`` logging
commands written to stdout.
"""

from __future__ import annotations

import enum
import os
from typing import Mapping

import click

_TRUTHY = {"true", "1", "yes", "on"}


class TaskResult(enum.Enum):
    SUCCEEDED = "Succeeded"
    SKIPPED = "Skipped"
    FAILED = "Failed"


def variable_env_name(name: str) -> str:
    """Map a pipeline variable or input name to its environment variable name."""
    return name.upper().replace(".", "_").replace(" ", "_")


def get_variable(name: str, environ: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    value = env.get(variable_env_name(name))
    return value or None


def get_input(name: str, environ: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    value = env.get("INPUT_" + variable_env_name(name))
    if value is None:
        return None
    return value.strip() or None


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUTHY


def get_bool_input(name: str, environ: Mapping[str, str] | None = None) -> bool:
    return parse_bool(get_input(name, environ))


def is_pull_request_build(environ: Mapping[str, str] | None = None) -> bool:
    return get_variable("Build.Reason", environ) == "PullRequest"


def get_target_branch_name(environ: Mapping[str, str] | None = None) -> str | None:
    """Return the PR target branch as a remote ref (``origin/<branch>``), or None."""
    branch = get_variable("System.PullRequest.TargetBranch", environ) or get_variable(
        "System.PullRequest.TargetBranchName", environ
    )
    if not branch:
        return None
    branch = branch.removeprefix("refs/heads/")
    if not branch:
        return None
    return f"origin/{branch}"


def set_secret(value: str | None) -> None:
    """Ask the agent to mask ``value`` in all subsequent log output."""
    if value:
        click.echo(f"##vso[task.setsecret]{value}")


def set_result(result: TaskResult, message: str) -> None:
    # Logging command properties cannot span lines.
    single_line = " ".join(message.splitlines())
    if result is TaskResult.FAILED:
        click.echo(f"##vso[task.logissue type=error]{single_line}")
    click.echo(f"##vso[task.complete result={result.value};]{single_line}")
