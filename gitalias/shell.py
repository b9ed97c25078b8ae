#!/usr/bin/env python3

import asyncio
import logging
import os
import subprocess
from typing import Dict, List, Optional

from .errors import CommandError

__all__ = [
    "run_command",
    "get_subprocess_env",
]

log = logging.getLogger(__name__)


def get_subprocess_env(extra: Optional[Dict[str, str]] = None) -> Optional[Dict[str, str]]:
    """
    Get the environment variables to be used for subprocess execution.
    This function can be mocked in tests to control the environment.

    Args:
        extra: Variables to set on top of the current environment

    Returns:
        Optional dictionary of environment variables, or None to use the current environment.
    """
    if not extra:
        return None
    env = os.environ.copy()
    env.update(extra)
    return env


async def run_command(
    cmd: List[str],
    cwd: Optional[str] = None,
    check: bool = True,
    capture_output: bool = True,
    env: Optional[Dict[str, str]] = None,
) -> subprocess.CompletedProcess[str]:
    """
    Run a subprocess command with consistent logging asynchronously.

    Args:
        cmd: Command to run as a list of strings
        cwd: Current working directory for the command
        check: If True, raise CommandError if the command returns non-zero exit code
        capture_output: If True, capture stdout and stderr, otherwise the
            command writes straight to the terminal
        env: Extra environment variables for this command only

    Returns:
        CompletedProcess instance with attributes args, returncode, stdout, stderr

    Raises:
        CommandError: If check=True and process returns non-zero exit code
    """
    log_cmd = " ".join(str(c) for c in cmd)
    if env:
        log_cmd = " ".join(f"{k}={v}" for k, v in env.items()) + " " + log_cmd
    log.info(f"Running command: {log_cmd}")

    stdout_pipe = asyncio.subprocess.PIPE if capture_output else None
    stderr_pipe = asyncio.subprocess.PIPE if capture_output else None
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=cwd,
        env=get_subprocess_env(env),
        stdout=stdout_pipe,
        stderr=stderr_pipe,
    )
    stdout_data, stderr_data = await process.communicate()

    stdout = ""
    stderr = ""
    if stdout_data:
        stdout = stdout_data.decode(errors="surrogateescape")
        log.debug(f"Command stdout: {stdout}")
    if stderr_data:
        stderr = stderr_data.decode(errors="surrogateescape")
        log.debug(f"Command stderr: {stderr}")

    returncode = process.returncode
    log.debug(f"Command return code: {returncode}")

    result = subprocess.CompletedProcess[str](
        args=cmd,
        returncode=0 if returncode is None else returncode,
        stdout=stdout,
        stderr=stderr,
    )

    if check and result.returncode != 0:
        raise CommandError(cmd, result.returncode, result.stdout, result.stderr)

    return result
