"""Core PR review orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import requests
from rich.console import Console
from rich.markup import escape

from azreview_core import pipelines
from azreview_core.ado.pull_request import AzureDevOpsClient, PullRequestContext, create_session
from azreview_core.config import ConfigurationError, InputResolver, RunConfig, resolve_run_config
from azreview_core.pipelines import TaskResult
from azreview_core.providers.azure import AzureEndpointReviewer
from azreview_core.providers.base import BaseReviewer
from azreview_core.providers.openai import OpenAIReviewer
from azreview_core.scm.git import GitClient, get_changed_files, get_file_diff, initialize_git

console = Console()
logger = logging.getLogger(__name__)

NO_FEEDBACK = "No feedback."

INSTRUCTIONS = f"""Act as a code reviewer of a Pull Request, providing feedback on possible bugs and clean code issues.
You are provided with the Pull Request changes in a patch format.
Each patch entry has the commit message in the Subject line followed by the code changes (diffs) in a unidiff format.

As a code reviewer, your task is:
- Review only added, edited or deleted lines.
- Group your findings under the headings "Critical", "Major" and "Minor", omitting empty groups.
- Finish with a short "Recommendations" section for general improvements.
- If there are no bugs and the changes are correct, write only '{NO_FEEDBACK}'
- If there are bugs or incorrect code changes, don't write '{NO_FEEDBACK}'"""


@dataclass
class ReviewSummary:
    """Outcome of run_review; the CLI reports ``result`` and ``message`` to the agent."""

    result: TaskResult
    message: str
    reviewed_files: list[str] = field(default_factory=list)
    commented_files: list[str] = field(default_factory=list)
    deleted_comments: int = 0


def should_publish(review: str | None) -> bool:
    """True when the model returned actual feedback rather than the no-issues sentinel."""
    if not review or not review.strip():
        return False
    return review.strip() != NO_FEEDBACK


def _get_reviewer(config: RunConfig, session: requests.Session) -> BaseReviewer:
    if config.use_azure_openai:
        if not config.aoi_endpoint:
            raise ConfigurationError("use_azure_openai is enabled but no aoi_endpoint was provided.")
        return OpenAIReviewer.for_azure(
            endpoint=config.aoi_endpoint,
            api_key=config.api_key,
            api_version=config.azure_api_version,
            model=config.model,
        )
    if config.aoi_endpoint:
        return AzureEndpointReviewer(endpoint=config.aoi_endpoint, api_key=config.api_key, session=session)
    return OpenAIReviewer(api_key=config.api_key, model=config.model)


def review_file(
    git: GitClient,
    target_branch: str,
    file_name: str,
    reviewer: BaseReviewer,
    comments: AzureDevOpsClient,
) -> bool:
    """Review one file's diff and publish the feedback as a file-scoped thread.

    Returns True when a comment was posted. Any failure is logged and
    re-raised so the run stops at the first broken file.
    """
    logger.info("Start reviewing %s ...", file_name)
    try:
        patch = get_file_diff(git, target_branch, file_name)
        review = reviewer.review(INSTRUCTIONS, patch)
        published = should_publish(review)
        if published:
            comments.add_comment(file_name, review)
    except Exception as e:
        logger.error("Review of %s failed: %s", file_name, e)
        raise

    logger.info("Review of %s completed.", file_name)
    return published


def run_review(resolver: InputResolver) -> ReviewSummary:
    """Run the full task: trigger check, inputs, change detection, purge, per-file review.

    Never raises; every terminal state is returned as a ReviewSummary.
    """
    environ = resolver.environ

    if not pipelines.is_pull_request_build(environ):
        return ReviewSummary(
            TaskResult.SKIPPED,
            "This task should be run only when the build is triggered from a Pull Request.",
        )

    summary = ReviewSummary(TaskResult.FAILED, "")
    try:
        config = resolve_run_config(resolver)
        pipelines.set_secret(config.api_key)

        session = create_session(config.support_self_signed_certificate)
        reviewer = _get_reviewer(config, session)
        git = initialize_git(config.working_dir)

        if not config.target_branch:
            summary.message = "No target branch found!"
            return summary

        changed_files = get_changed_files(git, config.target_branch)
        if not changed_files:
            summary.result = TaskResult.SUCCEEDED
            summary.message = "No changed files found!"
            return summary

        context = PullRequestContext.from_pipeline(environ)
        pipelines.set_secret(context.access_token)
        comments = AzureDevOpsClient(context, session)
        summary.deleted_comments = comments.delete_existing_comments()

        total = len(changed_files)
        for i, file_name in enumerate(changed_files, 1):
            console.print(f"\n[[{i}/{total}]] Reviewing: {escape(file_name)}")
            if review_file(git, config.target_branch, file_name, reviewer, comments):
                summary.commented_files.append(file_name)
                console.print("  Comment posted.")
            else:
                console.print(f"  {NO_FEEDBACK}")
            summary.reviewed_files.append(file_name)
    except Exception as e:
        logger.debug("Review aborted", exc_info=True)
        summary.result = TaskResult.FAILED
        summary.message = str(e) or e.__class__.__name__
        return summary

    summary.result = TaskResult.SUCCEEDED
    summary.message = "Pull Request reviewed."
    return summary
