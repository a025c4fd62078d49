from __future__ import annotations

import logging
import subprocess
from typing import Sequence

from azreview_core.utils.code import is_binary_file

logger = logging.getLogger(__name__)


class SourceControlError(RuntimeError):
    def __init__(self, command: Sequence[str], message: str, returncode: int | None = None):
        super().__init__(f"`{' '.join(command)}` failed: {message}")
        self.command = list(command)
        self.returncode = returncode


class GitClient:
    """Thin wrapper around the ``git`` binary bound to one working directory."""

    def __init__(self, base_dir: str, binary: str = "git"):
        self.base_dir = base_dir
        self.binary = binary

    def _run(self, *args: str) -> str:
        command = [self.binary, *args]
        try:
            # Diff bodies carry raw file bytes in whatever encoding the file uses.
            result = subprocess.run(
                command, cwd=self.base_dir, capture_output=True, encoding="utf-8", errors="replace"
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            raise SourceControlError(command, str(e)) from e
        if result.returncode != 0:
            raise SourceControlError(command, result.stderr.strip() or result.stdout.strip(), result.returncode)
        return result.stdout

    def add_config(self, key: str, value: str) -> None:
        self._run("config", "--local", key, value)

    def fetch(self) -> None:
        self._run("fetch")

    def diff(self, args: Sequence[str]) -> str:
        return self._run("diff", *args)


def initialize_git(base_dir: str) -> GitClient:
    return GitClient(base_dir=base_dir, binary="git")


def get_changed_files(git: GitClient, target_branch: str) -> list[str]:
    """Return added or modified paths relative to ``target_branch``, minus binary files.

    Paths keep the order git reports them in.
    """
    try:
        git.add_config("core.pager", "cat")
        git.add_config("core.quotepath", "false")
        git.fetch()
        diffs = git.diff([target_branch, "--name-only", "--diff-filter=AM"])
    except SourceControlError as e:
        logger.error("Could not compute changed files against %s: %s", target_branch, e)
        raise

    files = [line for line in diffs.split("\n") if line.strip()]
    non_binary_files = [f for f in files if not is_binary_file(f)]

    logger.info("Changed files (excluding binary files):\n%s", "\n".join(non_binary_files))
    return non_binary_files


def get_file_diff(git: GitClient, target_branch: str, file_name: str) -> str:
    return git.diff([target_branch, "--", file_name])
