"""Package-level configuration read from ``[package.metadata.glue_gun]``."""

from typing import List, Optional

from pydantic import Field, field_validator

from .utils import CommandTokens, StrictModelWithDocstrings

DEFAULT_BUILD_COMMAND = ["build"]
"""Cargo action used when the package does not override ``build_command``."""

DEFAULT_RUN_COMMAND = ["qemu-system-x86_64", "-cdrom", "{}"]
"""Emulator invocation used when the package does not override ``run_command``."""


class BuildConfig(StrictModelWithDocstrings):
    """Build and run settings declared by the payload package.

    Example manifest section::

        [package.metadata.glue_gun]
        build_command = ["build", "-Zbuild-std=core"]
        run_args = ["-serial", "stdio"]
        test_success_exit_code = 33
    """

    build_command: CommandTokens = Field(
        default_factory=lambda: list(DEFAULT_BUILD_COMMAND), min_length=1
    )
    """Cargo arguments replacing the default ``build`` action. Release, verbosity, feature and
    message-format flags are still appended."""
    run_command: CommandTokens = Field(
        default_factory=lambda: list(DEFAULT_RUN_COMMAND), min_length=1
    )
    """Emulator command line. Every ``{}`` in an argument is replaced by the ISO path."""
    run_args: List[str] = Field(default_factory=list)
    """Extra emulator arguments for normal runs."""
    test_args: List[str] = Field(default_factory=list)
    """Extra emulator arguments for test-harness runs."""
    test_success_exit_code: Optional[int] = Field(default=None)
    """Emulator exit code that signals a passing test run. Mapped to exit code 0."""

    @field_validator("run_command")
    @classmethod
    def _validate_run_command(cls, value: List[str]) -> List[str]:
        if not any("{}" in arg for arg in value):
            raise ValueError("run_command must contain a '{}' placeholder for the ISO path")
        return value
