"""Strong-typed descriptions of the cargo packages taking part in a build."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field, model_validator

from .utils import BaseModelWithDocstrings, FrozenModelWithDocstrings, NonEmptyString


class PackageRef(BaseModelWithDocstrings):
    """A cargo package located on disk.

    All paths are taken from the metadata query. In particular ``output_dir`` is the
    ``target_directory`` reported by cargo and is never derived from ``root_path``.
    """

    name: NonEmptyString
    """The package name as declared in its manifest (e.g., 'kernel', 'bootloader')."""
    root_path: Path
    """The directory containing the package manifest."""
    manifest_path: Path
    """Absolute path of the package's ``Cargo.toml``."""
    output_dir: Path
    """The cargo target directory build artifacts are written to."""
    crate_names: List[NonEmptyString] = Field(default_factory=list)
    """Names of all workspace member crates of this package's workspace."""

    @model_validator(mode="after")
    def _validate_manifest_inside_root(self) -> "PackageRef":
        """Validate that the manifest file lives directly inside the package root.

        Raises
        ------
        ValueError
            If ``manifest_path`` is not a child of ``root_path``.
        """
        if self.manifest_path.parent != self.root_path:
            raise ValueError(
                f"Manifest {self.manifest_path} is not located inside package root "
                f"{self.root_path}"
            )
        return self


class DependencyEdge(FrozenModelWithDocstrings):
    """A dependency declared by a package manifest.

    Edges are immutable and hashable so that they can be collected into sets while walking
    the local dependency graph.
    """

    declared_name: NonEmptyString
    """The name the dependent package uses for the dependency (its rename, if any)."""
    resolved_name: NonEmptyString
    """The real package name of the dependency."""
    local_path: Optional[Path] = Field(default=None)
    """Directory of the dependency when it is referenced by a filesystem path. None for
    registry and git dependencies."""

    @property
    def is_local(self) -> bool:
        """Whether the dependency is referenced through a local filesystem path."""
        return self.local_path is not None

    @property
    def manifest_path(self) -> Optional[Path]:
        """The ``Cargo.toml`` of a local dependency, or None for remote dependencies."""
        if self.local_path is None:
            return None
        return self.local_path / "Cargo.toml"
