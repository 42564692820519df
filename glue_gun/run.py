"""Booting a built ISO image in an emulator."""

from __future__ import annotations

import subprocess
from typing import List

from glue_gun.data import BuildMetadata
from glue_gun.errors import ToolNotFound
from glue_gun.logging import get_logger
from glue_gun.utils import format_command

logger = get_logger(__name__)

DEBUG_ARGS = ["-s", "-S"]
"""Emulator arguments that open a gdb server on :1234 and halt the CPU until attached."""


def emulator_command(metadata: BuildMetadata, debug: bool = False) -> List[str]:
    """The emulator command line for ``metadata``.

    ``{}`` in ``run_command`` is replaced by the ISO path. Test harness builds get
    ``test_args``, all other builds ``run_args``.
    """
    config = metadata.config
    cmd = [arg.replace("{}", str(metadata.iso_path)) for arg in config.run_command]
    cmd.extend(config.test_args if metadata.variant.is_test else config.run_args)
    if debug:
        cmd.extend(DEBUG_ARGS)
    return cmd


def map_exit_code(metadata: BuildMetadata, returncode: int) -> int:
    """Translate the emulator exit status into the process exit status.

    Test harness builds with ``test_success_exit_code`` configured map that code to 0 and any
    other code to 1. Everything else is passed through.
    """
    success_code = metadata.config.test_success_exit_code
    if metadata.variant.is_test and success_code is not None:
        return 0 if returncode == success_code else 1
    return returncode


def run(metadata: BuildMetadata, debug: bool = False) -> int:
    """Boot ``metadata.iso_path`` and wait for the emulator to exit.

    Returns
    -------
    int
        The mapped exit code, see :func:`map_exit_code`.

    Raises
    ------
    ToolNotFound
        If the emulator is not installed.
    """
    cmd = emulator_command(metadata, debug)
    logger.debug("Running command: %s", format_command(cmd))
    if debug:
        logger.info("Waiting for debugger on localhost:1234")
    try:
        returncode = subprocess.call(cmd)
    except FileNotFoundError as e:
        raise ToolNotFound(cmd[0], "run") from e

    exit_code = map_exit_code(metadata, returncode)
    if metadata.variant.is_test:
        logger.info("Test run %s", "passed" if exit_code == 0 else "failed")
    return exit_code
