from glue_gun.compile import (
    CargoBuilder,
    IsoAssembler,
    Orchestrator,
    SymbolExtractor,
    create_orchestrator,
)
from glue_gun.config import CliOptions, ToolchainConfig
from glue_gun.data import (
    BuildConfig,
    BuildMetadata,
    BuildVariant,
    DependencyEdge,
    Harness,
    PackageRef,
    Profile,
)
from glue_gun.errors import (
    ArtifactCountError,
    BuildError,
    CarrierProducedMultipleArtifacts,
    ConfigurationError,
    DependencyNotFound,
    GlueGunError,
    ManifestNotFound,
    MultipleBinaries,
    ObjectToolFailed,
    ObjectToolMissing,
    PayloadProducedMultipleArtifacts,
    ToolExitNonzero,
)
from glue_gun.logging import configure_logging, get_logger
from glue_gun.manifest import Manifests, Resolver
from glue_gun.watch import WatchEngine, WatchSet, compute_watch_set

__all__ = [
    # Pipeline
    "Orchestrator",
    "create_orchestrator",
    "CargoBuilder",
    "SymbolExtractor",
    "IsoAssembler",
    "Resolver",
    "Manifests",
    # Watch
    "WatchEngine",
    "WatchSet",
    "compute_watch_set",
    # Configuration
    "ToolchainConfig",
    "CliOptions",
    "BuildConfig",
    # Data types
    "PackageRef",
    "DependencyEdge",
    "Profile",
    "Harness",
    "BuildVariant",
    "BuildMetadata",
    # Errors
    "GlueGunError",
    "ConfigurationError",
    "ManifestNotFound",
    "MultipleBinaries",
    "DependencyNotFound",
    "BuildError",
    "ToolExitNonzero",
    "ObjectToolMissing",
    "ObjectToolFailed",
    "ArtifactCountError",
    "PayloadProducedMultipleArtifacts",
    "CarrierProducedMultipleArtifacts",
    "configure_logging",
    "get_logger",
]
