"""Command line interface for git-clean-gone."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from git_clean_gone import __version__
from git_clean_gone.git import GitError, GitRepo, parse_gone_branches

app = typer.Typer(help="Clean up local Git branches that have been deleted on the remote")
console = Console(highlight=False)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Send log records to stderr, at DEBUG level when verbose."""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))

    # GitPython logs every Popen call at DEBUG
    logging.getLogger("git").setLevel(logging.WARNING)


def print_git_output(output: str) -> None:
    """Print text produced by git without rich markup or wrapping."""
    if output:
        console.print(escape(output), soft_wrap=True)


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        console.print(f"[red]Error:[/red] {escape(str(err))}", soft_wrap=True)
        raise typer.Exit(code=1) from err


def version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        console.print(f"git-clean-gone {__version__}")
        raise typer.Exit()


def clean_gone_branches(repo: GitRepo, dry_run: bool, verbose: bool) -> None:
    """Fetch, find gone branches, delete them and show what is left."""
    console.print("Fetching and pruning remote branches...")
    fetch_output = repo.fetch_prune()
    if verbose:
        print_git_output(fetch_output)

    branch_output = repo.list_tracking_branches()
    if verbose:
        console.print("\nBranch output:")
        print_git_output(branch_output)

    gone_branches = parse_gone_branches(branch_output)
    logger.debug("Found %d gone branch(es)", len(gone_branches))
    if not gone_branches:
        console.print("No gone branches found.")
    else:
        console.print(f"\nFound {len(gone_branches)} gone branch(es):")
        for branch in gone_branches:
            console.print(f"  - {escape(branch)}")

        if dry_run:
            console.print(f"\n\\[DRY RUN] Would delete {len(gone_branches)} branch(es)")
        else:
            console.print("\nDeleting gone branches...")
            print_git_output(repo.delete_branches(gone_branches))

    console.print("\nRemaining branches:")
    print_git_output(repo.list_all_branches())


@app.command()
def main(
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-d", help="Perform a dry run without actually deleting branches")
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show git output")] = False,
    path: Annotated[Path, typer.Option(help="Path to git repository")] = Path("."),
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show the version and exit"),
    ] = None,
) -> None:
    """Delete local branches whose remote-tracking branch is gone."""
    setup_logging(verbose)
    repo = get_repo(path)

    try:
        clean_gone_branches(repo, dry_run, verbose)
    except GitError as err:
        print_git_output(err.output)
        console.print(f"[red]Error:[/red] {escape(str(err))}", soft_wrap=True)
        raise typer.Exit(code=1) from err


if __name__ == "__main__":
    app()
