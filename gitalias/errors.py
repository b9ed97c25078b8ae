#!/usr/bin/env python3

"""Exceptions raised by gitalias.

Everything derives from GitAliasError so the CLI can turn any expected
failure into a message and a non-zero exit status.
"""

from typing import List, Optional, Sequence

__all__ = [
    "GitAliasError",
    "CommitMessageError",
    "RemoteDetectionError",
    "MissingArgumentError",
    "SameBranchError",
    "CommandError",
    "OperationError",
]


class GitAliasError(Exception):
    """Base class for all gitalias failures."""


class CommitMessageError(GitAliasError):
    """The commit message does not follow the conventional commit format."""


class RemoteDetectionError(GitAliasError):
    """No remote was given and none (or several) are configured."""

    def __init__(self, message: str, remotes: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.remotes: List[str] = list(remotes or [])


class MissingArgumentError(GitAliasError):
    """A required positional argument was not supplied."""


class SameBranchError(GitAliasError):
    """A merge was requested between a branch and itself."""


class CommandError(GitAliasError, RuntimeError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        message = f"Command failed with exit code {returncode}: {' '.join(self.cmd)}"
        if stdout:
            message += f"\nStdout: {stdout}"
        if stderr:
            message += f"\nStderr: {stderr}"
        super().__init__(message)


class OperationError(GitAliasError):
    """A high level alias failed; the cause is chained via ``__cause__``."""
