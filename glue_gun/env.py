"""Environment variables understood by glue_gun.

These are read only by the command line entry point. Everything below it receives the values
through :class:`glue_gun.config.ToolchainConfig` and explicit arguments.
"""

import os
from pathlib import Path
from typing import Optional


def get_cargo_path() -> str:
    """The cargo executable, from ``CARGO`` (set by cargo for runners) or ``cargo``."""
    return os.environ.get("CARGO", "cargo")


def get_rustc_path() -> str:
    """The rustc executable, from ``RUSTC`` or ``rustc``."""
    return os.environ.get("RUSTC", "rustc")


def get_cargo_manifest_dir() -> Optional[Path]:
    """The payload package directory from ``CARGO_MANIFEST_DIR``, if set."""
    value = os.environ.get("CARGO_MANIFEST_DIR")
    return Path(value) if value else None


def get_glue_gun_objcopy() -> Optional[Path]:
    """An explicit ``llvm-objcopy`` to use instead of the rustup component."""
    value = os.environ.get("GLUE_GUN_OBJCOPY")
    return Path(value) if value else None


def get_glue_gun_log_level() -> Optional[str]:
    """Log level override from ``GLUE_GUN_LOG_LEVEL``."""
    value = os.environ.get("GLUE_GUN_LOG_LEVEL")
    return value.upper() if value else None
