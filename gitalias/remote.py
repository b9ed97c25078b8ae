#!/usr/bin/env python3

import logging
from typing import NamedTuple, Optional

import click

from .errors import RemoteDetectionError
from .git import Git

__all__ = [
    "RemoteTarget",
    "detect_remote",
]

log = logging.getLogger(__name__)


class RemoteTarget(NamedTuple):
    """The remote and branch a push, pull or sync acts on."""

    remote: str
    branch: str

    @property
    def ref(self) -> str:
        """The remote tracking ref, e.g. ``origin/main``."""
        return f"{self.remote}/{self.branch}"


async def detect_remote(
    git: Git, remote: Optional[str] = None, branch: Optional[str] = None
) -> RemoteTarget:
    """Resolve the remote and branch for an operation.

    An explicit remote or branch is used as given. A missing remote is only
    inferred when the repository has exactly one; a missing branch is the
    currently checked out one.

    Args:
        git: The git collaborator to query
        remote: Requested remote name, or None/empty to detect it
        branch: Requested branch name, or None/empty to detect it

    Returns:
        The resolved RemoteTarget

    Raises:
        RemoteDetectionError: If no remote was given and the repository has
            zero or several remotes
    """
    if not remote:
        remotes = await git.list_remotes()
        if len(remotes) == 1:
            remote = remotes[0]
            click.echo(f"==> Detected Remote: {remote}")
        elif not remotes:
            click.echo("==> No Remotes Detected")
            raise RemoteDetectionError("No remote configured; specify one", remotes)
        else:
            click.echo("==> Multiple Remotes Detected:")
            click.echo("\n".join(remotes))
            raise RemoteDetectionError(
                f"Multiple remotes configured ({', '.join(remotes)}); specify one",
                remotes,
            )
    else:
        click.echo(f"==> Requested Remote: {remote}")

    if not branch:
        branch = await git.current_branch()
        click.echo(f"==> Detected Branch: {branch}")
    else:
        click.echo(f"==> Requested Branch: {branch}")

    log.debug("Resolved remote target %s/%s", remote, branch)
    return RemoteTarget(remote, branch)
