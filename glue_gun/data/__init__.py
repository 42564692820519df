"""Data layer with strongly-typed models for glue_gun."""

from .build import BuildMetadata, BuildVariant, Harness, Profile
from .cargo import CargoDependency, CargoMetadata, CargoPackage, CargoTarget
from .config import BuildConfig
from .package import DependencyEdge, PackageRef

__all__ = [
    # Package types
    "PackageRef",
    "DependencyEdge",
    # Configuration
    "BuildConfig",
    # Build results
    "Profile",
    "Harness",
    "BuildVariant",
    "BuildMetadata",
    # cargo metadata document
    "CargoMetadata",
    "CargoPackage",
    "CargoDependency",
    "CargoTarget",
]
