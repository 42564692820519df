"""The set of input paths whose changes trigger a rebuild."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, List, Set, Tuple, Union

from glue_gun.data import PackageRef
from glue_gun.logging import get_logger
from glue_gun.manifest import Resolver

logger = get_logger(__name__)

INPUT_FILES = ("Cargo.toml", "Cargo.lock", "build.rs")
"""Files directly inside a package root that are build inputs."""

INPUT_DIRS = ("src", "tests")
"""Directories inside a package root whose whole tree is a build input."""


def _is_within(path: Path, directory: Path) -> bool:
    return path == directory or directory in path.parents


@dataclass(frozen=True)
class WatchSet:
    """Input paths of the watched packages and the output directories to ignore.

    A watch set is computed once per watch session. Packages added as local dependencies
    after the session started are not picked up until the session is restarted.
    """

    roots: FrozenSet[Path]
    """Package root directories."""
    inputs: FrozenSet[Path]
    """Whitelisted input files and directories below the roots."""
    ignored: FrozenSet[Path]
    """Output directories. Changes below them never match."""

    @classmethod
    def from_roots(cls, roots: Iterable[Path], ignored: Iterable[Path] = ()) -> "WatchSet":
        """Whitelist the input entries of every package root."""
        resolved_roots = frozenset(Path(r).resolve() for r in roots)
        inputs: Set[Path] = set()
        for root in resolved_roots:
            inputs.update(root / name for name in INPUT_FILES + INPUT_DIRS)
        return cls(
            roots=resolved_roots,
            inputs=frozenset(inputs),
            ignored=frozenset(Path(i).resolve() for i in ignored),
        )

    def matches(self, path: Union[str, Path]) -> bool:
        """Whether a change at ``path`` should trigger a rebuild."""
        path = Path(path).resolve()
        if any(_is_within(path, ignored) for ignored in self.ignored):
            return False
        return any(_is_within(path, entry) for entry in self.inputs)

    def watch_points(self) -> List[Tuple[Path, bool]]:
        """Existing directories to subscribe to, with their recursive flag.

        Package roots are watched non-recursively (for the input files directly inside them),
        input directories recursively.
        """
        points: List[Tuple[Path, bool]] = []
        for root in sorted(self.roots):
            if root.is_dir():
                points.append((root, False))
            for name in INPUT_DIRS:
                directory = root / name
                if directory.is_dir():
                    points.append((directory, True))
        return points


def compute_watch_set(resolver: Resolver, kernel: PackageRef, bootloader: PackageRef) -> WatchSet:
    """Build the watch set for a kernel and its bootloader.

    The set covers both packages and every package reachable from either of them through
    local path dependencies. The target directories of both packages are ignored so that the
    pipeline's own writes do not trigger rebuilds.
    """
    roots: Set[Path] = {kernel.root_path, bootloader.root_path}
    for package in (kernel, bootloader):
        for edge in resolver.transitive_local_dependencies(package.manifest_path):
            assert edge.local_path is not None
            roots.add(edge.local_path)

    watch_set = WatchSet.from_roots(roots, ignored=[kernel.output_dir, bootloader.output_dir])
    logger.debug("Watching packages: %s", sorted(str(r) for r in watch_set.roots))
    logger.debug("Ignoring: %s", sorted(str(i) for i in watch_set.ignored))
    return watch_set
