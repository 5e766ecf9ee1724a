"""Git repository operations."""

import logging
import re
from pathlib import Path
from typing import Union

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

logger = logging.getLogger(__name__)

# "  name  abc1234 [origin/name: ahead 1, gone] subject"
_BRANCH_LINE = re.compile(r"^\s*(?P<name>\S+)\s+(?:\S+\s+)?\[(?P<upstream>[^\]]*)\]")
_GONE_MARKER = re.compile(r"[:,]\s*gone$")

# First column of `git branch -vv`: current branch, or checked out in another worktree
_CHECKED_OUT_MARKERS = ("*", "+")


class GitError(Exception):
    """Git operation error."""

    def __init__(self, message: str, output: str = "") -> None:
        """Initialize error.

        Args:
            message: Error message
            output: Output git produced before failing, if any
        """
        super().__init__(message)
        self.output = output


def _decode_output(output: Union[str, bytes], command: str) -> str:
    """Decode git output strictly as UTF-8.

    GitPython hands back stderr already decoded with surrogateescape, so text
    is turned back into the original bytes before decoding.
    """
    if isinstance(output, str):
        output = output.encode("utf-8", "surrogateescape")
    try:
        return output.decode("utf-8")
    except UnicodeDecodeError as err:
        raise GitError(f"Failed to parse git {command} output as UTF-8: {err}") from err


def parse_gone_branches(branch_output: str) -> list[str]:
    """Find branches whose upstream is gone in the output of `git branch -vv`.

    Checked-out branches are skipped even when their upstream is gone. Lines
    without an upstream annotation are ignored.

    Args:
        branch_output: Full text printed by `git branch -vv`

    Returns:
        Branch names in the order they appear in the listing
    """
    branches = []
    for line in branch_output.splitlines():
        if line.startswith(_CHECKED_OUT_MARKERS):
            continue
        match = _BRANCH_LINE.match(line)
        if match and _GONE_MARKER.search(match.group("upstream")):
            branches.append(match.group("name"))
    return branches


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Open the working copy containing path."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError("Not in a git repository") from err
        if self.repo.bare:
            raise GitError("Cannot operate on bare repository")
        logger.debug("Using repository at %s", self.repo.working_dir)

    def fetch_prune(self) -> str:
        """Fetch the default remote and prune deleted remote-tracking branches.

        Other remotes are left alone, so an unreachable extra remote does
        not stop the cleanup.

        Returns:
            Everything git printed, progress included
        """
        logger.debug("Running git fetch --append --prune")
        try:
            _, stdout, stderr = self.repo.git.fetch(
                "--append",
                "--prune",
                with_extended_output=True,
                stdout_as_string=False,
            )
        except GitCommandError as err:
            raise GitError(f"Failed to fetch and prune remote branches: {err}") from err
        parts = (_decode_output(stdout, "fetch"), _decode_output(stderr, "fetch"))
        return "\n".join(part for part in parts if part)

    def list_tracking_branches(self) -> str:
        """Get the `git branch -vv` listing."""
        logger.debug("Running git branch -vv")
        try:
            raw = self.repo.git.branch("-vv", "--no-color", stdout_as_string=False)
        except GitCommandError as err:
            raise GitError(f"Failed to list branches: {err}") from err
        return _decode_output(raw, "branch")

    def delete_branches(self, branches: list[str]) -> str:
        """Force delete local branches with a single `git branch -D`.

        Args:
            branches: Branch names to delete

        Returns:
            git's report of the deleted branches

        Raises:
            GitError: If any branch could not be deleted. The branches git did
                delete are reported in the error's output.
        """
        if not branches:
            return ""

        logger.debug("Running git branch -D %s", " ".join(branches))
        status, stdout, stderr = self.repo.git.branch(
            "-D",
            *branches,
            with_extended_output=True,
            with_exceptions=False,
        )
        stdout = _decode_output(stdout, "branch")
        if status != 0:
            message = _decode_output(stderr, "branch").strip()
            raise GitError(f"Failed to delete some branches: {message}", output=stdout)
        return stdout

    def list_all_branches(self) -> str:
        """Get the `git branch -a` listing of local and remote branches."""
        logger.debug("Running git branch -a")
        try:
            raw = self.repo.git.branch("-a", "--no-color", stdout_as_string=False)
        except GitCommandError as err:
            raise GitError(f"Failed to list all branches: {err}") from err
        return _decode_output(raw, "branch")
