#!/usr/bin/env python3

"""The aliases themselves.

Each alias is a fixed sequence of git commands. The first failing step
aborts the rest and surfaces as an OperationError naming the alias that
failed, chained to whatever went wrong underneath.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

import click

from .config import get_log_format
from .errors import GitAliasError, MissingArgumentError, OperationError, SameBranchError
from .git import Git
from .lint import lint_commit_message
from .remote import detect_remote

__all__ = [
    "operation",
    "version_string",
    "aliases",
    "ver",
    "ll",
    "it",
    "up",
    "amend",
    "amend_now",
    "push",
    "push_force",
    "pull",
    "pull_force",
    "clean",
    "clear",
    "sync",
    "fixit",
    "fixup",
    "rebase",
    "merge",
    "merge_to",
    "reset",
    "reset_force",
]

log = logging.getLogger(__name__)

T = TypeVar("T")

# Accept whatever git would open an editor for (merge messages, rebase todo)
NO_EDITOR = {"EDITOR": "true", "GIT_EDITOR": "true"}


def operation(
    failure: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Attach a failure message to an alias.

    Args:
        failure: Shown to the user when any step of the alias fails
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except (GitAliasError, OSError) as e:
                log.error(f"{func.__name__}: {failure}: {e}")
                raise OperationError(failure) from e

        wrapper.failure_message = failure  # type: ignore[attr-defined]
        return wrapper

    return decorator


def version_string() -> str:
    from . import __version__

    return f"v{__version__}"


def _banner(message: str) -> None:
    click.echo()
    click.echo(f"==> {message}")
    click.echo()


@operation("Failed to display git aliases version")
async def aliases(git: Git) -> None:
    click.echo(f"git-aliases is at {version_string()}")


@operation("Failed to retrieve git version")
async def ver(git: Git) -> None:
    click.echo(version_string())


@operation("Failed to display commit history")
async def ll(git: Git, extra: Sequence[str] = (), log_format: Optional[str] = None) -> None:
    """Compact, decorated one-line-per-commit history."""
    pretty = log_format or get_log_format()
    await git.run(
        "log", "--abbrev-commit", "--decorate", f"--pretty=format:{pretty}", *extra
    )


@operation("Failed to stage and commit changes")
async def it(git: Git, message: Optional[str]) -> None:
    """Stage everything and commit it with a linted message."""
    await git.run("add", "--all")
    message = lint_commit_message(message)
    await git.run("commit", "-m", message)


@operation("Failed to commit and push changes")
async def up(
    git: Git,
    message: Optional[str],
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    extra: Sequence[str] = (),
) -> None:
    await it(git, message)
    await push(git, remote, branch, extra)


async def _amend(git: Git, message: Optional[str], reset_author: bool) -> None:
    await git.run("add", "--all")

    args = ["commit", "--amend"]
    if reset_author:
        args.append("--reset-author")

    if message:
        lint_commit_message(message)
        await git.run(*args, f"--message={message}")
    else:
        await git.run(*args, "--no-edit")


@operation("Failed to amend the last commit")
async def amend(git: Git, message: Optional[str] = None) -> None:
    """Fold all current changes into the last commit, optionally rewording it."""
    await _amend(git, message, reset_author=False)


@operation("Failed to amend the last commit with the current time")
async def amend_now(git: Git, message: Optional[str] = None) -> None:
    """Like amend, but also resets the author and timestamp."""
    await _amend(git, message, reset_author=True)


@operation("Failed to push changes")
async def push(
    git: Git,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    extra: Sequence[str] = (),
) -> None:
    target = await detect_remote(git, remote, branch)
    await git.run("push", target.remote, target.branch, *extra)


@operation("Failed to force push changes")
async def push_force(
    git: Git,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    extra: Sequence[str] = (),
) -> None:
    target = await detect_remote(git, remote, branch)
    await git.run("push", "--force", target.remote, target.branch, *extra)


@operation("Failed to pull changes")
async def pull(
    git: Git,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    extra: Sequence[str] = (),
) -> None:
    target = await detect_remote(git, remote, branch)
    await git.run("pull", target.remote, target.branch, *extra)


@operation("Failed to forcibly update local code")
async def pull_force(
    git: Git, remote: Optional[str] = None, branch: Optional[str] = None
) -> None:
    """Discard local history and match the remote branch exactly."""
    target = await detect_remote(git, remote, branch)
    await git.run("fetch", "--all")
    await git.run("reset", "--hard", target.ref)


@operation("Failed to clean the git repository")
async def clean(git: Git) -> None:
    await git.run("gc", "--prune=now", "--aggressive")
    _banner("Git Repository Cleaned")


@operation("Failed to clear the git repository")
async def clear(git: Git) -> None:
    """Throw away every uncommitted change, untracked files included."""
    await git.run("reset", "--hard")
    await git.run("clean", "-df")
    _banner("Git Repository Cleared")


@operation("Failed to sync with remote")
async def sync(
    git: Git, remote: Optional[str] = None, branch: Optional[str] = None
) -> None:
    """Reset a branch to its remote state while carrying local work along.

    Local changes (untracked files included) are stashed, the branch is
    checked out and hard reset to the remote tracking ref, stale remote
    branches are pruned and the stash is reapplied.
    """
    target = await detect_remote(git, remote, branch)

    await git.run("add", "--all")
    stash_before = await git.stash_ref()
    await git.run("stash")
    stashed = await git.stash_ref() != stash_before
    if not stashed:
        log.info("Nothing to stash, skipping stash pop")

    await git.run("fetch", "--all")
    await git.run("checkout", target.branch)
    await git.run("reset", "--hard", target.ref)
    await git.run("remote", "prune", target.remote)
    if stashed:
        await git.run("stash", "pop")

    _banner(f"Synced with '{target.ref}'")


@operation("Failed to create a fixup commit")
async def fixit(git: Git, commit: Optional[str] = None) -> None:
    """Commit all changes as a fixup of ``commit`` (HEAD by default)."""
    commit_hash = await git.rev_parse(commit or "HEAD")
    await git.run("add", "--all")
    await git.run("commit", "--no-verify", "--fixup", commit_hash)


@operation("Failed to fixup and push changes")
async def fixup(
    git: Git,
    commit: Optional[str] = None,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    extra: Sequence[str] = (),
) -> None:
    await fixit(git, commit)
    await push(git, remote, branch, extra)


@operation("Failed to rebase commits")
async def rebase(git: Git, extra: Sequence[str] = ()) -> None:
    """Non-interactively run an autosquashing interactive rebase."""
    await git.run(
        "rebase",
        "--interactive",
        "--autosquash",
        "--autostash",
        "--rebase-merges",
        "--no-fork-point",
        *extra,
        env=NO_EDITOR,
    )


async def _check_merge_target(git: Git, branch: Optional[str]) -> tuple[str, str]:
    """Return ``(branch, current_branch)`` once the two are known to differ."""
    if not branch:
        raise MissingArgumentError("Error: No branch specified.")

    current = await git.current_branch()
    if current == branch:
        raise SameBranchError(
            "Error: You cannot merge into the same branch you are currently on."
        )
    return branch, current


def _merge_args(branch: str, message: Optional[str]) -> list[str]:
    if message:
        return ["merge", branch, "--no-ff", "-m", message]
    return ["merge", branch, "--no-ff", "--log"]


@operation("Failed to merge branch")
async def merge(git: Git, branch: Optional[str], message: Optional[str] = None) -> None:
    """Merge ``branch`` into the current branch, always creating a merge commit."""
    branch, _ = await _check_merge_target(git, branch)
    await git.run(*_merge_args(branch, message), env=NO_EDITOR)


@operation("Failed to merge into target branch")
async def merge_to(
    git: Git, branch: Optional[str], message: Optional[str] = None
) -> None:
    """Merge the current branch into ``branch``, then switch back."""
    branch, current = await _check_merge_target(git, branch)
    await git.run("checkout", branch)
    await git.run(*_merge_args(current, message), env=NO_EDITOR)
    await git.run("checkout", current)


@operation("Failed to reset commit")
async def reset(git: Git, ref: Optional[str] = None) -> None:
    """Undo commits up to ``ref`` (the parent of HEAD by default), keeping changes staged."""
    await git.run("reset", "--soft", ref or "HEAD^")


@operation("Failed to force reset commit")
async def reset_force(git: Git, ref: Optional[str] = None) -> None:
    await git.run("reset", "--hard", ref or "HEAD^")
