#!/usr/bin/env python3

"""Test doubles for code that talks to git."""

import subprocess
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
from unittest import mock

from .errors import CommandError
from .git import Git

__all__ = [
    "FakeGit",
    "capture_echo",
]

# A canned response: stdout, (stdout, returncode), or a list consumed one
# entry per call
Response = Union[str, Tuple[str, int], List[Union[str, Tuple[str, int]]]]


class FakeGit(Git):
    """A Git that records argument vectors instead of running anything.

    Queries are answered from ``responses``, keyed by the argument tuple.
    Anything not listed succeeds with empty output, unless it is listed in
    ``failures``.
    """

    def __init__(
        self,
        remotes: Sequence[str] = ("origin",),
        branch: str = "main",
        responses: Optional[Dict[Tuple[str, ...], Response]] = None,
        failures: Iterable[Sequence[str]] = (),
        repository: bool = True,
    ) -> None:
        super().__init__(cwd=None, executable="git")
        self.calls: List[Tuple[str, ...]] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.responses: Dict[Tuple[str, ...], Response] = {
            ("remote",): "\n".join(remotes),
            ("rev-parse", "--abbrev-ref", "HEAD"): branch,
        }
        self.responses.update(responses or {})
        self.failures = {tuple(f) for f in failures}
        self.repository = repository

    async def run(
        self,
        *args: str,
        env: Optional[Dict[str, str]] = None,
        capture: bool = False,
        check: bool = True,
    ) -> subprocess.CompletedProcess[str]:
        self.calls.append(args)
        self.envs.append(env)

        response = self.responses.get(args, "")
        if isinstance(response, list):
            response = response.pop(0) if response else ""
        if isinstance(response, tuple):
            stdout, returncode = response
        else:
            stdout, returncode = response, 0
        if args in self.failures:
            returncode = 1

        cmd = [self.executable, *args]
        if check and returncode != 0:
            raise CommandError(cmd, returncode, stdout, "")
        return subprocess.CompletedProcess[str](
            args=cmd, returncode=returncode, stdout=stdout, stderr=""
        )

    def is_repository(self) -> bool:
        return self.repository

    def commands(self) -> List[str]:
        """The recorded calls as shell-like strings, for compact assertions."""
        return [" ".join(call) for call in self.calls]


@contextmanager
def capture_echo() -> Iterator[List[str]]:
    """Collect everything passed to ``click.echo`` as a list of lines."""
    lines: List[str] = []

    def echo(message: Any = None, *args: Any, **kwargs: Any) -> None:
        lines.append("" if message is None else str(message))

    with mock.patch("click.echo", side_effect=echo):
        yield lines
