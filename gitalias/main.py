#!/usr/bin/env python3

import functools
import logging
import os
import sys
from typing import Any, Awaitable, Callable, Optional, Tuple

import anyio
import click

from . import __version__, operations
from .completion import BRANCH_COMMANDS, SHELLS, complete_branches, completion_script
from .config import get_git_executable
from .errors import OperationError
from .git import Git

# Options git understands must reach git untouched
PASSTHROUGH = {"ignore_unknown_options": True, "allow_interspersed_args": False}


def configure_logging(log_file: str = "gitalias.log") -> None:
    """Configure logging to write to a file, and to the console when debugging.

    The log level is determined from the configuration file.
    It can be overridden by setting the GITALIAS_DEBUG_LEVEL environment variable.
    Setting GITALIAS_DEBUG forces DEBUG and echoes log records to stderr;
    otherwise the console is left to the commands' own output.
    Example: GITALIAS_DEBUG=1 gitalias push

    The log directory is read from the configuration file's logger.path setting.
    By default, logs are written to $HOME/.gitalias.
    """
    from .config import get_logger_path, get_logger_verbosity

    log_dir = get_logger_path()
    log_path = os.path.join(log_dir, log_file)

    log_level_str = os.environ.get("GITALIAS_DEBUG_LEVEL") or get_logger_verbosity()

    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    # Default to INFO if invalid
    log_level = log_level_map.get(log_level_str.upper(), logging.INFO)

    debug_mode = False
    if os.environ.get("GITALIAS_DEBUG"):
        log_level = logging.DEBUG
        debug_mode = True

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler: logging.Handler = logging.FileHandler(log_path)
    except OSError as e:
        # Logging is best effort; the alias itself must still run
        click.echo(f"Could not open log file {log_path}: {e}", err=True)
        file_handler = logging.NullHandler()
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if debug_mode:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.debug(f"Logging configured. Log file: {log_path}")
    logging.debug(f"Log level set to: {logging.getLevelName(log_level)}")


def format_failure(error: BaseException) -> str:
    """Render a failure and its causes, innermost first.

    Each alias that gave up contributes a ``==> Failed to ...`` line, so
    ``up`` failing in its commit step reads as the lint guidance, then the
    commit failure, then the push-and-commit failure.
    """
    chain = []
    current: Optional[BaseException] = error
    while current is not None:
        chain.append(current)
        current = current.__cause__

    lines = []
    for exc in reversed(chain):
        lines.append("")
        if isinstance(exc, OperationError):
            lines.append(f"==> {exc}")
        else:
            lines.append(str(exc))
    lines.append("")
    return "\n".join(lines)


def _invoke(func: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> None:
    """Run an alias against the current directory and map failure to exit status 1."""
    configure_logging()
    git = Git(executable=get_git_executable())
    logging.info(f"Invoking {func.__name__} with {args} {kwargs}")
    try:
        anyio.run(functools.partial(func, git, *args, **kwargs))
    except OperationError as e:
        click.echo(format_failure(e), err=True)
        sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="gitalias")
def cli() -> None:
    """gitalias: short commands for everyday git workflows.

    Every command is also installed as a standalone git-<command> script,
    so `git it "feat: add thing"` works too.
    """


@cli.command("aliases")
def aliases() -> None:
    """Show which version of the aliases is installed."""
    _invoke(operations.aliases)


@cli.command("ver")
def ver() -> None:
    """Print the aliases version."""
    _invoke(operations.ver)


@cli.command("ll", context_settings=PASSTHROUGH)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def ll(extra: Tuple[str, ...]) -> None:
    """Long list of commit history. Extra arguments go to git log."""
    _invoke(operations.ll, extra=extra)


@cli.command("it")
@click.argument("message", required=False)
def it(message: Optional[str]) -> None:
    """Stage all changes and commit them with MESSAGE.

    MESSAGE must follow the conventional commit format, e.g.
    "feat(auth): add token refresh".
    """
    _invoke(operations.it, message)


@cli.command("up", context_settings=PASSTHROUGH)
@click.argument("message", required=False)
@click.argument("remote", required=False)
@click.argument("branch", required=False)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def up(
    message: Optional[str],
    remote: Optional[str],
    branch: Optional[str],
    extra: Tuple[str, ...],
) -> None:
    """Commit all changes with MESSAGE, then push them."""
    _invoke(operations.up, message, remote, branch, extra=extra)


@cli.command("amend")
@click.argument("message", required=False)
def amend(message: Optional[str]) -> None:
    """Add all changes to the last commit, rewording it if MESSAGE is given."""
    _invoke(operations.amend, message)


@cli.command("amend-now")
@click.argument("message", required=False)
def amend_now(message: Optional[str]) -> None:
    """Like amend, and also reset the commit's author and date to now."""
    _invoke(operations.amend_now, message)


@cli.command("push", context_settings=PASSTHROUGH)
@click.argument("remote", required=False)
@click.argument("branch", required=False)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def push(remote: Optional[str], branch: Optional[str], extra: Tuple[str, ...]) -> None:
    """Push BRANCH (default: current) to REMOTE (default: the only remote)."""
    _invoke(operations.push, remote, branch, extra=extra)


@cli.command("pushf", context_settings=PASSTHROUGH)
@click.argument("remote", required=False)
@click.argument("branch", required=False)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def pushf(remote: Optional[str], branch: Optional[str], extra: Tuple[str, ...]) -> None:
    """Force push BRANCH to REMOTE."""
    _invoke(operations.push_force, remote, branch, extra=extra)


@cli.command("pull", context_settings=PASSTHROUGH)
@click.argument("remote", required=False)
@click.argument("branch", required=False)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def pull(remote: Optional[str], branch: Optional[str], extra: Tuple[str, ...]) -> None:
    """Pull BRANCH from REMOTE."""
    _invoke(operations.pull, remote, branch, extra=extra)


@cli.command("pullf")
@click.argument("remote", required=False)
@click.argument("branch", required=False)
def pullf(remote: Optional[str], branch: Optional[str]) -> None:
    """Hard reset the local branch to REMOTE/BRANCH."""
    _invoke(operations.pull_force, remote, branch)


@cli.command("clean")
def clean() -> None:
    """Garbage collect and prune unreachable objects."""
    _invoke(operations.clean)


@cli.command("clear")
def clear() -> None:
    """Discard all uncommitted changes and untracked files."""
    _invoke(operations.clear)


@cli.command("sync")
@click.argument("remote", required=False)
@click.argument("branch", required=False)
def sync(remote: Optional[str], branch: Optional[str]) -> None:
    """Reset BRANCH to REMOTE/BRANCH, keeping local changes stashed across."""
    _invoke(operations.sync, remote, branch)


@cli.command("fixit")
@click.argument("commit", required=False)
def fixit(commit: Optional[str]) -> None:
    """Commit all changes as a fixup for COMMIT (default: HEAD)."""
    _invoke(operations.fixit, commit)


@cli.command("fixup", context_settings=PASSTHROUGH)
@click.argument("commit", required=False)
@click.argument("remote", required=False)
@click.argument("branch", required=False)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def fixup(
    commit: Optional[str],
    remote: Optional[str],
    branch: Optional[str],
    extra: Tuple[str, ...],
) -> None:
    """Create a fixup commit for COMMIT, then push."""
    _invoke(operations.fixup, commit, remote, branch, extra=extra)


@cli.command("rebase", context_settings=PASSTHROUGH)
@click.argument("extra", nargs=-1, type=click.UNPROCESSED)
def rebase(extra: Tuple[str, ...]) -> None:
    """Autosquash fixup commits without opening an editor."""
    _invoke(operations.rebase, extra=extra)


@cli.command("merge")
@click.argument("branch", required=False, shell_complete=complete_branches)
@click.argument("message", required=False)
def merge(branch: Optional[str], message: Optional[str]) -> None:
    """Merge BRANCH into the current branch with a merge commit."""
    _invoke(operations.merge, branch, message)


@cli.command("merge-to")
@click.argument("branch", required=False, shell_complete=complete_branches)
@click.argument("message", required=False)
def merge_to(branch: Optional[str], message: Optional[str]) -> None:
    """Merge the current branch into BRANCH and come back."""
    _invoke(operations.merge_to, branch, message)


@cli.command("reset")
@click.argument("ref", required=False, shell_complete=complete_branches)
def reset(ref: Optional[str]) -> None:
    """Soft reset to REF (default: HEAD^), keeping changes staged."""
    _invoke(operations.reset, ref)


@cli.command("resetf")
@click.argument("ref", required=False, shell_complete=complete_branches)
def resetf(ref: Optional[str]) -> None:
    """Hard reset to REF (default: HEAD^), discarding changes."""
    _invoke(operations.reset_force, ref)


@cli.command("completion")
@click.argument("shell", type=click.Choice(SHELLS), default="bash")
def completion(shell: str) -> None:
    """Print the snippet that enables branch completion in SHELL."""
    click.echo(completion_script(shell, ("gitalias", *BRANCH_COMMANDS)))
