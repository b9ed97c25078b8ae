#!/usr/bin/env python3

"""Tab completion of branch names.

Completion itself is click's: the shell calls the program back with
``_<PROG>_COMPLETE=<shell>_source`` set, and click asks
:func:`complete_branches` for candidates.
"""

import logging
from typing import List, Sequence

import anyio
import click
from click.shell_completion import CompletionItem

from .config import get_git_executable
from .errors import CommandError
from .git import Git

__all__ = [
    "BRANCH_COMMANDS",
    "SHELLS",
    "branch_candidates",
    "complete_branches",
    "completion_script",
]

log = logging.getLogger(__name__)

# Standalone scripts whose first argument is a branch or ref
BRANCH_COMMANDS = ("git-merge", "git-merge-to", "git-reset", "git-resetf")

SHELLS = ("bash", "zsh", "fish")


def branch_candidates(git: Git, incomplete: str = "") -> List[str]:
    """Branch names starting with ``incomplete``; empty outside a repository."""
    if not git.is_repository():
        return []
    try:
        branches = anyio.run(git.list_branches)
    except (CommandError, OSError) as e:
        # Never break the user's shell over a failed lookup
        log.debug(f"Branch completion unavailable: {e}")
        return []
    return [name for name in branches if name.startswith(incomplete)]


def complete_branches(
    ctx: click.Context, param: click.Parameter, incomplete: str
) -> List[CompletionItem]:
    git = Git(executable=get_git_executable())
    return [CompletionItem(name) for name in branch_candidates(git, incomplete)]


def _complete_var(prog_name: str) -> str:
    return f"_{prog_name.replace('-', '_').upper()}_COMPLETE"


def completion_script(shell: str, programs: Sequence[str]) -> str:
    """Shell snippet that activates completion for ``programs``.

    Args:
        shell: One of bash, zsh or fish
        programs: Executable names to register

    Returns:
        Lines to add to the shell's startup file
    """
    if shell not in SHELLS:
        raise ValueError(f"Unsupported shell: {shell}")

    lines = []
    for prog in programs:
        var = _complete_var(prog)
        if shell == "fish":
            lines.append(f"{var}=fish_source {prog} | source")
        else:
            lines.append(f'eval "$({var}={shell}_source {prog})"')
    return "\n".join(lines)
