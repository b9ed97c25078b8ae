#!/usr/bin/env python3

import logging
import re
from typing import Optional

import click

from .errors import CommitMessageError

__all__ = [
    "COMMIT_TYPES",
    "COMMIT_MESSAGE_RE",
    "COMMIT_RULES",
    "is_valid_commit_message",
    "lint_commit_message",
]

log = logging.getLogger(__name__)

COMMIT_TYPES = (
    "build",
    "chore",
    "ci",
    "docs",
    "feat",
    "fix",
    "perf",
    "refactor",
    "revert",
    "style",
)

COMMIT_MESSAGE_RE = re.compile(
    r"^(" + "|".join(COMMIT_TYPES) + r")(\([A-Za-z0-9]+\))?: .+$"
)

COMMIT_RULES = f"""\
Oops! Your commit message does not conform to the commit rules.
Please ensure your commit message follows the conventional commits format:
  type(scope): description
Where:
  - 'type' could be one of: {", ".join(COMMIT_TYPES)}
  - 'scope' is optional and can be anything specifying the place of the commit change
  - 'description' is a short description of the change"""


def is_valid_commit_message(message: Optional[str]) -> bool:
    """Check the subject line of ``message`` against the commit rules."""
    if not message:
        return False
    subject = message.split("\n", 1)[0]
    return COMMIT_MESSAGE_RE.fullmatch(subject) is not None


def lint_commit_message(message: Optional[str]) -> str:
    """Validate a commit message, reporting the outcome on the console.

    Args:
        message: The message about to be committed

    Returns:
        The message, once it is known to be valid

    Raises:
        CommitMessageError: If the message does not follow the rules. The
            exception text explains the expected format.
    """
    if not is_valid_commit_message(message):
        log.debug("Rejected commit message: %r", message)
        raise CommitMessageError(COMMIT_RULES)

    click.echo(">> Your commit message adheres to the commit rules")
    click.echo()
    return str(message)
