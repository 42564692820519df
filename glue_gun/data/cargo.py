"""Typed view of the ``cargo metadata --format-version 1`` document.

Only the fields the pipeline reads are modeled; everything else cargo emits is ignored.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field

from .utils import ExternalModel, NonEmptyString


class CargoTarget(ExternalModel):
    """A build target (binary, library, test, ...) of a package."""

    name: NonEmptyString
    """The target name."""
    kind: List[str] = Field(default_factory=list)
    """Target kinds, e.g. ``["bin"]`` or ``["lib"]``."""

    @property
    def is_binary(self) -> bool:
        return "bin" in self.kind


class CargoDependency(ExternalModel):
    """A dependency as declared in a package manifest."""

    name: NonEmptyString
    """The real package name of the dependency."""
    rename: Optional[str] = Field(default=None)
    """The name the dependency is imported under, if renamed in the manifest."""
    path: Optional[Path] = Field(default=None)
    """Directory of a path dependency. Absent for registry and git dependencies."""
    kind: Optional[str] = Field(default=None)
    """None for normal dependencies, ``"dev"`` or ``"build"`` otherwise."""

    @property
    def declared_name(self) -> str:
        return self.rename or self.name


class CargoPackage(ExternalModel):
    """A package known to cargo."""

    name: NonEmptyString
    """The package name."""
    id: NonEmptyString
    """Opaque package id used by ``workspace_members``."""
    manifest_path: Path
    """Absolute path of the package's ``Cargo.toml``."""
    dependencies: List[CargoDependency] = Field(default_factory=list)
    """Declared dependencies."""
    targets: List[CargoTarget] = Field(default_factory=list)
    """Build targets."""
    metadata: Optional[Dict[str, Any]] = Field(default=None)
    """The free-form ``[package.metadata]`` table."""

    @property
    def binary_targets(self) -> List[CargoTarget]:
        return [t for t in self.targets if t.is_binary]


class CargoMetadata(ExternalModel):
    """The document produced by ``cargo metadata``."""

    packages: List[CargoPackage]
    """All packages in the dependency graph."""
    workspace_members: List[str] = Field(default_factory=list)
    """Package ids of the workspace members."""
    target_directory: Path
    """The cargo target directory of the workspace."""

    def find_by_manifest(self, manifest_path: Path) -> Optional[CargoPackage]:
        """Find the package whose manifest is ``manifest_path``."""
        for package in self.packages:
            if package.manifest_path == manifest_path:
                return package
        return None

    def find_by_name(self, name: str) -> Optional[CargoPackage]:
        """Find a package by its real name."""
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def workspace_crate_names(self) -> List[str]:
        """Names of the workspace member packages, in ``workspace_members`` order."""
        by_id = {package.id: package.name for package in self.packages}
        return [by_id[member] for member in self.workspace_members if member in by_id]
