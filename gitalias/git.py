#!/usr/bin/env python3

"""The git command line, wrapped as an explicit collaborator.

Every alias receives a :class:`Git` instance instead of calling the binary
directly, which lets the tests substitute :class:`gitalias.testing.FakeGit`.
"""

import logging
import os
import subprocess
from typing import Dict, List, Optional

from .shell import run_command

__all__ = [
    "Git",
    "find_git_root",
]

log = logging.getLogger(__name__)


def find_git_root(start_path: str) -> str | None:
    """Find the root of the Git repository starting from the given path.

    Args:
        start_path: The path to start searching from

    Returns:
        The absolute path to the Git repository root, or None if not found
    """
    path = os.path.abspath(start_path)

    while path:
        # .git is a file inside worktrees and submodules
        if os.path.exists(os.path.join(path, ".git")):
            return path

        parent = os.path.dirname(path)
        if parent == path:  # Reached filesystem root
            return None

        path = parent

    return None


class Git:
    """Runs git commands in one working directory."""

    def __init__(self, cwd: Optional[str] = None, executable: str = "git") -> None:
        self.cwd = cwd
        self.executable = executable

    async def run(
        self,
        *args: str,
        env: Optional[Dict[str, str]] = None,
        capture: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        """Run ``git <args>``.

        State changing commands are run uncaptured so git talks to the
        terminal directly. Pass ``capture=True`` to read the output.

        Raises:
            CommandError: If check is True and git exits non-zero
        """
        return await run_command(
            [self.executable, *args],
            cwd=self.cwd,
            check=check,
            capture_output=capture,
            env=env,
        )

    async def output(self, *args: str) -> str:
        """Run a query command and return its stripped stdout."""
        result = await self.run(*args, capture=True)
        return str(result.stdout).strip()

    async def list_remotes(self) -> List[str]:
        """Names of the configured remotes, in git's order."""
        remotes = await self.output("remote")
        return [line.strip() for line in remotes.splitlines() if line.strip()]

    async def current_branch(self) -> str:
        """Name of the checked out branch (``HEAD`` when detached)."""
        return await self.output("rev-parse", "--abbrev-ref", "HEAD")

    async def rev_parse(self, ref: str) -> str:
        """Resolve ``ref`` to a full commit hash."""
        return await self.output("rev-parse", ref)

    async def stash_ref(self) -> str | None:
        """Hash of the newest stash entry, or None when the stash is empty."""
        result = await self.run(
            "rev-parse", "-q", "--verify", "refs/stash", capture=True, check=False
        )
        if result.returncode != 0:
            return None
        return str(result.stdout).strip() or None

    async def list_branches(self) -> List[str]:
        """Local and remote branch names as listed by ``git branch -a``.

        The current branch marker and the ``remotes/`` prefix are stripped,
        and symbolic refs such as ``origin/HEAD -> origin/main`` keep only
        their own name.
        """
        listing = await self.output("branch", "-a")
        branches: List[str] = []
        for line in listing.splitlines():
            name = line.lstrip("* ").strip()
            if not name or name.startswith("("):
                # "(HEAD detached at ...)"
                continue
            name = name.split(" -> ", 1)[0]
            if name.startswith("remotes/"):
                name = name[len("remotes/") :]
            if name not in branches:
                branches.append(name)
        return branches

    def is_repository(self) -> bool:
        """Whether the working directory is inside a git checkout."""
        return find_git_root(self.cwd or os.getcwd()) is not None
