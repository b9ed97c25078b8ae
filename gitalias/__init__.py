#!/usr/bin/env python3

__version__ = "1.2.0"

from .errors import (  # noqa: E402
    CommandError,
    CommitMessageError,
    GitAliasError,
    MissingArgumentError,
    OperationError,
    RemoteDetectionError,
    SameBranchError,
)
from .git import Git  # noqa: E402
from .lint import is_valid_commit_message, lint_commit_message  # noqa: E402
from .main import cli, configure_logging  # noqa: E402
from .remote import RemoteTarget, detect_remote  # noqa: E402
from .shell import get_subprocess_env, run_command  # noqa: E402

__all__ = [
    "__version__",
    "cli",
    "configure_logging",
    "Git",
    "RemoteTarget",
    "detect_remote",
    "is_valid_commit_message",
    "lint_commit_message",
    "run_command",
    "get_subprocess_env",
    "GitAliasError",
    "CommitMessageError",
    "RemoteDetectionError",
    "MissingArgumentError",
    "SameBranchError",
    "CommandError",
    "OperationError",
]
