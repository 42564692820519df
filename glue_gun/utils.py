"""Helpers for invoking external tools."""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from glue_gun.errors import ToolExitNonzero, ToolNotFound
from glue_gun.logging import get_logger

logger = get_logger(__name__)

Command = Sequence[Union[str, Path]]


def format_command(cmd: Command) -> str:
    """Render a command line the way it would be typed into a shell."""
    return " ".join(shlex.quote(str(arg)) for arg in cmd)


def run_tool(
    cmd: Command,
    *,
    stage: str,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    capture_stdout: bool = False,
    capture_stderr: bool = True,
) -> subprocess.CompletedProcess:
    """Run an external tool to completion and fail on a non-zero exit status.

    There is no timeout: a hung tool blocks the calling stage.

    Parameters
    ----------
    cmd : Command
        The program and its arguments.
    stage : str
        Name of the pipeline stage, used in log and error messages.
    cwd : Path, optional
        Working directory of the child process.
    env : Mapping[str, str], optional
        Extra environment bindings, added on top of the inherited environment.
    capture_stdout : bool
        Pipe stdout instead of inheriting it.
    capture_stderr : bool
        Pipe stderr instead of inheriting it. Captured stderr is attached to the raised error.

    Returns
    -------
    subprocess.CompletedProcess
        The finished process with text stdout/stderr where captured.

    Raises
    ------
    ToolNotFound
        If the program cannot be executed.
    ToolExitNonzero
        If the program exits with a non-zero status.
    """
    args: List[str] = [str(arg) for arg in cmd]
    child_env: Optional[Dict[str, str]] = None
    if env:
        child_env = os.environ.copy()
        child_env.update(env)
        logger.debug("Env vars: %s", dict(env))
    logger.debug("Running command: %s", format_command(args))

    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            env=child_env,
            stdout=subprocess.PIPE if capture_stdout else None,
            stderr=subprocess.PIPE if capture_stderr else None,
            text=True,
        )
    except FileNotFoundError as e:
        raise ToolNotFound(args[0], stage) from e

    if result.returncode != 0:
        raise ToolExitNonzero(args, result.returncode, result.stderr or "", stage=stage)
    return result
