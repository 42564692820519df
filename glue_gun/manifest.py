"""Resolution of the payload and carrier packages from cargo metadata."""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Deque, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from glue_gun.data import BuildConfig, CargoMetadata, CargoPackage, DependencyEdge, PackageRef
from glue_gun.errors import (
    BuildError,
    DependencyNotFound,
    InvalidConfig,
    ManifestNotFound,
    MultipleBinaries,
)
from glue_gun.logging import get_logger
from glue_gun.utils import run_tool

logger = get_logger(__name__)

MANIFEST_NAME = "Cargo.toml"
CARRIER_DEPENDENCY = "bootloader"
CONFIG_TABLE = "glue_gun"

MetadataQuery = Callable[[Path], CargoMetadata]
"""Returns the cargo metadata document for a manifest path."""


def cargo_metadata_query(cargo: str = "cargo") -> MetadataQuery:
    """Create a metadata query backed by ``cargo metadata``."""

    def query(manifest_path: Path) -> CargoMetadata:
        result = run_tool(
            [cargo, "metadata", "--format-version", "1", "--manifest-path", manifest_path],
            stage="metadata",
            capture_stdout=True,
        )
        try:
            return CargoMetadata.model_validate(json.loads(result.stdout))
        except json.JSONDecodeError as e:
            raise BuildError(
                f"[metadata] cargo printed invalid json for {manifest_path}: {e}"
            ) from e
        except ValidationError as e:
            raise BuildError(
                f"[metadata] Unexpected cargo metadata for {manifest_path}: {e}"
            ) from e

    return query


@dataclass
class Manifests:
    """The packages and configuration of one build."""

    kernel: PackageRef
    bootloader: PackageRef
    config: BuildConfig


class Resolver:
    """Answers questions about cargo packages by querying their metadata.

    Nothing is cached across calls: every public method issues fresh metadata queries, so a
    resolver can be kept for the lifetime of a watch session without going stale on manifest
    edits.
    """

    def __init__(self, query: MetadataQuery) -> None:
        self._query = query

    def _load(self, manifest_path: Path) -> Tuple[CargoMetadata, CargoPackage]:
        manifest_path = Path(manifest_path).resolve()
        if not manifest_path.is_file():
            raise ManifestNotFound(manifest_path)
        metadata = self._query(manifest_path)
        package = metadata.find_by_manifest(manifest_path)
        if package is None:
            raise ManifestNotFound(manifest_path)
        return metadata, package

    @staticmethod
    def _package_ref(metadata: CargoMetadata, package: CargoPackage) -> PackageRef:
        return PackageRef(
            name=package.name,
            root_path=package.manifest_path.parent,
            manifest_path=package.manifest_path,
            output_dir=metadata.target_directory,
            crate_names=metadata.workspace_crate_names(),
        )

    def resolve(self, manifest_path: Path) -> PackageRef:
        """Resolve the package owning ``manifest_path``.

        Raises
        ------
        ManifestNotFound
            If no manifest exists at ``manifest_path`` or cargo does not report a package for it.
        MultipleBinaries
            If the package does not declare exactly one binary target.
        """
        metadata, package = self._load(manifest_path)
        binaries = [t.name for t in package.binary_targets]
        if len(binaries) != 1:
            raise MultipleBinaries(package.name, binaries)
        return self._package_ref(metadata, package)

    def find_dependency(self, package: PackageRef, declared_name: str) -> PackageRef:
        """Locate the package a dependency of ``package`` refers to.

        The dependency is matched by the name it is imported under, so a manifest entry
        ``bootloader = { package = "my-loader", path = "..." }`` is found as ``bootloader``.

        Raises
        ------
        DependencyNotFound
            If ``package`` declares no dependency named ``declared_name``.
        """
        metadata, current = self._load(package.manifest_path)
        dependency = next(
            (d for d in current.dependencies if d.declared_name == declared_name), None
        )
        if dependency is None:
            raise DependencyNotFound(package.name, declared_name)

        dependency_pkg = metadata.find_by_name(dependency.name)
        if dependency_pkg is None:
            raise DependencyNotFound(package.name, declared_name)
        logger.debug(
            "Dependency %s crate location: %s", declared_name, dependency_pkg.manifest_path
        )

        # The dependency is built as its own workspace, so its target directory and crate
        # names come from its own metadata.
        dep_metadata, dep_package = self._load(dependency_pkg.manifest_path)
        return self._package_ref(dep_metadata, dep_package)

    def read_config(self, package: PackageRef) -> BuildConfig:
        """Parse the ``[package.metadata.glue_gun]`` table of ``package``.

        Raises
        ------
        InvalidConfig
            If the table contains unknown keys or values of the wrong type.
        """
        _, current = self._load(package.manifest_path)
        table = (current.metadata or {}).get(CONFIG_TABLE) or {}
        try:
            return BuildConfig.model_validate(table)
        except ValidationError as e:
            raise InvalidConfig(
                f"Invalid [package.metadata.{CONFIG_TABLE}] in {package.manifest_path}: {e}"
            ) from e

    def crate_names(self, manifest_path: Path) -> List[str]:
        """Names of the workspace member crates of the workspace owning ``manifest_path``."""
        metadata, _ = self._load(manifest_path)
        return metadata.workspace_crate_names()

    def resolve_manifests(self, manifest_path: Path) -> Manifests:
        """Resolve the payload package, its configuration and its carrier package."""
        kernel = self.resolve(manifest_path)
        config = self.read_config(kernel)
        bootloader = self.find_dependency(kernel, CARRIER_DEPENDENCY)
        logger.debug("Kernel crate: %s", kernel.root_path)
        logger.debug("Bootloader crate: %s", bootloader.root_path)
        return Manifests(kernel=kernel, bootloader=bootloader, config=config)

    def transitive_local_dependencies(self, manifest_path: Path) -> Set[DependencyEdge]:
        """Collect every dependency reachable through local path dependencies.

        Registry and git dependencies are not followed. The walk uses a worklist and a set of
        visited manifests, so shared sub-trees are queried once and the result holds one edge
        per distinct (package name, path) pair.

        Parameters
        ----------
        manifest_path : Path
            The manifest to start from. It is not part of the result.

        Returns
        -------
        Set[DependencyEdge]
            The local dependency edges, deduplicated by (resolved name, path).
        """
        start = Path(manifest_path).resolve()
        visited: Set[Path] = {start}
        worklist: Deque[Path] = deque([start])
        edges: Dict[Tuple[str, Path], DependencyEdge] = {}

        while worklist:
            current_manifest = worklist.popleft()
            _, package = self._load(current_manifest)
            for dependency in package.dependencies:
                if dependency.path is None:
                    continue
                local_path = dependency.path.resolve()
                key = (dependency.name, local_path)
                if key not in edges:
                    edges[key] = DependencyEdge(
                        declared_name=dependency.declared_name,
                        resolved_name=dependency.name,
                        local_path=local_path,
                    )
                dep_manifest = local_path / MANIFEST_NAME
                if dep_manifest not in visited:
                    visited.add(dep_manifest)
                    worklist.append(dep_manifest)

        return set(edges.values())


def find_manifest(manifest_dir: Optional[Path]) -> Path:
    """The ``Cargo.toml`` inside ``manifest_dir`` (current directory if None).

    Raises
    ------
    ManifestNotFound
        If the directory holds no ``Cargo.toml``.
    """
    manifest_dir = Path(manifest_dir) if manifest_dir is not None else Path.cwd()
    manifest_path = manifest_dir / MANIFEST_NAME
    if not manifest_path.is_file():
        raise ManifestNotFound(manifest_path)
    return manifest_path.resolve()
