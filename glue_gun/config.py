from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from glue_gun import env


@dataclass
class ToolchainConfig:
    """External tools the pipeline invokes.

    All fields have default values; :meth:`from_env` fills them from the process environment
    and is only called at the command line entry point.
    """

    cargo: str = field(default="cargo")
    rustc: str = field(default="rustc")
    objcopy: Optional[Path] = field(default=None)  # None: locate the rustup llvm-tools copy
    iso_tool: str = field(default="grub-mkrescue")
    symbol_merge_tool: str = field(default="bochsym")

    def __post_init__(self):
        for name in ["cargo", "rustc", "iso_tool", "symbol_merge_tool"]:
            if not getattr(self, name):
                raise ValueError(f"{name} must not be empty")

    @classmethod
    def from_env(cls) -> "ToolchainConfig":
        return cls(
            cargo=env.get_cargo_path(),
            rustc=env.get_rustc_path(),
            objcopy=env.get_glue_gun_objcopy(),
        )


@dataclass
class CliOptions:
    """Options shared by all subcommands."""

    release: bool = field(default=False)
    verbose: bool = field(default=False)
    very_verbose: bool = field(default=False)
    kernel: Optional[Path] = field(default=None)

    def __post_init__(self):
        if self.release and self.kernel is not None:
            raise ValueError("--release cannot be combined with --kernel")
