"""Exception hierarchy shared by every pipeline stage.

Configuration errors are raised before any external build process runs. Build errors are
raised by the stages that invoke external tools. Both derive from :class:`GlueGunError`, which
is what the command line layer catches and reports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class GlueGunError(Exception):
    """Base class of all errors raised by glue_gun."""


class ConfigurationError(GlueGunError):
    """The packages involved in the build are not set up the way the pipeline expects."""


class ManifestNotFound(ConfigurationError):
    """No ``Cargo.toml`` exists at the expected location."""

    def __init__(self, manifest_path: Path) -> None:
        super().__init__(f"Couldn't find Cargo.toml at {manifest_path}")
        self.manifest_path = manifest_path


class MultipleBinaries(ConfigurationError):
    """The payload package does not declare exactly one binary target."""

    def __init__(self, package: str, binaries: Sequence[str]) -> None:
        super().__init__(
            f"Package '{package}' must declare exactly one binary target, found "
            f"{len(binaries)}: {', '.join(binaries) or '<none>'}"
        )
        self.package = package
        self.binaries = list(binaries)


class DependencyNotFound(ConfigurationError):
    """A required dependency is not declared by the package."""

    def __init__(self, package: str, dependency: str) -> None:
        super().__init__(f"Couldn't find needed dependency '{dependency}' in '{package}'")
        self.package = package
        self.dependency = dependency


class InvalidConfig(ConfigurationError):
    """The ``[package.metadata.glue_gun]`` table could not be parsed."""


class BuildError(GlueGunError, RuntimeError):
    """Raised when a stage of the pipeline fails to produce its artifact."""

    stage: str = "build"


class ToolNotFound(BuildError):
    """A required external tool could not be executed."""

    def __init__(self, tool: str, stage: str) -> None:
        super().__init__(f"[{stage}] Couldn't find executable '{tool}'")
        self.tool = tool
        self.stage = stage


class ToolExitNonzero(BuildError):
    """An external tool exited with a non-zero status."""

    def __init__(
        self, command: Sequence[str], returncode: int, stderr: str = "", stage: str = "build"
    ) -> None:
        super().__init__(f"[{stage}] '{command[0]}' exited with status {returncode}")
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        self.stage = stage


class ObjectToolMissing(BuildError):
    """``llvm-objcopy`` could not be located."""

    stage = "symbols"

    def __init__(self) -> None:
        super().__init__(
            "llvm-objcopy not found. Maybe the rustup component `llvm-tools-preview` is "
            "missing? Install it through: `rustup component add llvm-tools-preview`"
        )


class ObjectToolFailed(ToolExitNonzero):
    """``llvm-objcopy`` exited with a non-zero status."""

    def __init__(self, command: Sequence[str], exit_code: int, stderr: str = "") -> None:
        super().__init__(command, exit_code, stderr, stage="symbols")

    @property
    def exit_code(self) -> int:
        return self.returncode


class ArtifactCountError(BuildError):
    """A build produced zero or more than one executable."""

    def __init__(self, stage: str, artifacts: Sequence[Path], message: Optional[str] = None) -> None:
        super().__init__(
            message
            or f"[{stage}] Expected exactly one executable, however {len(artifacts)} have been "
            f"built: {', '.join(str(a) for a in artifacts) or '<none>'}"
        )
        self.stage = stage
        self.artifacts = list(artifacts)


class PayloadProducedMultipleArtifacts(ArtifactCountError):
    """The payload build did not produce exactly one executable."""

    def __init__(self, artifacts: Sequence[Path]) -> None:
        super().__init__("kernel", artifacts)


class CarrierProducedMultipleArtifacts(ArtifactCountError):
    """The carrier build did not produce exactly one executable."""

    def __init__(self, artifacts: Sequence[Path]) -> None:
        super().__init__("bootloader", artifacts)
