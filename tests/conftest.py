"""Test configuration and fixtures."""

import os
from pathlib import Path
from typing import Callable, Generator

import pytest
from git import Actor, Repo

# Branches deleted on the remote by test_env, in `git branch` order
GONE_BRANCHES = ["bugfix/old-fix", "feature/gone"]


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    The local repository has main checked out and these branches:
    - feature/active: tracks a remote branch that still exists
    - feature/gone, bugfix/old-fix: track remote branches deleted on the
      remote but not yet pruned locally
    - local-only: never pushed

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    remote_repo = Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)

    author = Actor("Test User", "test@example.com")
    local_repo.config_writer().set_value("user", "name", author.name).release()
    local_repo.config_writer().set_value("user", "email", author.email).release()

    readme = local_path / "README.md"
    readme.write_text("# Test Repository")
    local_repo.index.add(["README.md"])
    local_repo.index.commit("Initial commit", author=author)

    if "main" not in local_repo.heads:
        local_repo.create_head("main")
    main_branch = local_repo.heads.main
    main_branch.checkout()

    origin = local_repo.create_remote("origin", url=str(remote_path))
    origin.push("main")
    main_branch.set_tracking_branch(origin.refs.main)

    def create_branch(name: str, push: bool = True) -> None:
        """Create a branch off main with one commit."""
        main_branch.checkout()
        branch = local_repo.create_head(name)
        branch.checkout()

        file_name = f"{name.replace('/', '_')}.txt"
        (local_path / file_name).write_text(f"{name} content")
        local_repo.index.add([file_name])
        local_repo.index.commit(f"Add {name}", author=author)

        if push:
            origin.push(name)
            branch.set_tracking_branch(origin.refs[name])

    create_branch("feature/active")
    create_branch("feature/gone")
    create_branch("bugfix/old-fix")
    create_branch("local-only", push=False)

    main_branch.checkout()

    # Delete on the remote side only, so a fetch with prune is needed to notice
    for name in GONE_BRANCHES:
        remote_repo.git.branch("-D", name)

    yield local_path, remote_path


@pytest.fixture
def local_repo(test_env: tuple[Path, Path]) -> Repo:
    """GitPython handle on the local repository."""
    local_path, _ = test_env
    return Repo(local_path)


@pytest.fixture
def add_loose_ref() -> Callable[[Path, bytes, str], None]:
    """Write a ref file directly, so names git would print as non-UTF-8 can be created."""

    def add(git_dir: Path, ref: bytes, hexsha: str) -> None:
        ref_path = os.path.join(os.fsencode(git_dir), ref)
        os.makedirs(os.path.dirname(ref_path), exist_ok=True)
        with open(ref_path, "w") as ref_file:
            ref_file.write(f"{hexsha}\n")

    return add
