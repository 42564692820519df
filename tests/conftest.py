import logging
import stat
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pytest

from glue_gun.data import CargoMetadata
from glue_gun.manifest import Resolver


class FakeWorkspace:
    """Cargo packages laid out on disk with a metadata query that needs no cargo.

    Every package gets its own directory with a ``Cargo.toml``, ``src/main.rs`` and a ``target``
    output directory. The metadata query answers like ``cargo metadata`` run on that package.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.packages: Dict[str, Dict[str, Any]] = {}
        self.queries: List[Path] = []

    def add_package(
        self,
        name: str,
        dependencies: Sequence[Dict[str, Any]] = (),
        binaries: Optional[Sequence[str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        members: Optional[Sequence[str]] = None,
    ) -> Path:
        """Create a package and return its (resolved) manifest path.

        Dependencies are dicts with ``name`` and optional ``rename`` / ``local`` (the name of
        another fake package the dependency points to by path).
        """
        root = (self.root / name).resolve()
        (root / "src").mkdir(parents=True, exist_ok=True)
        (root / "src" / "main.rs").write_text("fn main() {}\n")
        manifest = root / "Cargo.toml"
        manifest.write_text(f'[package]\nname = "{name}"\nversion = "0.1.0"\n')
        self.packages[name] = {
            "root": root,
            "dependencies": list(dependencies),
            "binaries": [name] if binaries is None else list(binaries),
            "metadata": metadata,
            "members": list(members) if members is not None else [name],
        }
        return manifest

    def manifest(self, name: str) -> Path:
        return self.packages[name]["root"] / "Cargo.toml"

    def _package_json(self, name: str) -> Dict[str, Any]:
        if name not in self.packages:
            # Registry package
            return {
                "name": name,
                "id": f"registry+https://github.com/rust-lang/crates.io-index#{name}@1.0.0",
                "manifest_path": f"/registry/{name}-1.0.0/Cargo.toml",
                "dependencies": [],
                "targets": [{"name": name, "kind": ["lib"]}],
                "metadata": None,
            }
        info = self.packages[name]
        dependencies = []
        for dep in info["dependencies"]:
            entry: Dict[str, Any] = {
                "name": dep["name"],
                "rename": dep.get("rename"),
                "kind": None,
                "req": "*",
            }
            if dep.get("local"):
                entry["path"] = str(self.packages[dep["local"]]["root"])
            dependencies.append(entry)
        targets = [{"name": b, "kind": ["bin"]} for b in info["binaries"]]
        targets.append({"name": name, "kind": ["lib"]})
        return {
            "name": name,
            "id": f"path+file://{info['root']}#{name}@0.1.0",
            "manifest_path": str(info["root"] / "Cargo.toml"),
            "dependencies": dependencies,
            "targets": targets,
            "metadata": info["metadata"],
        }

    def query(self, manifest_path: Path) -> CargoMetadata:
        self.queries.append(manifest_path)
        owner = next(n for n, i in self.packages.items() if i["root"] / "Cargo.toml" == manifest_path)
        names = set(self.packages)
        for info in self.packages.values():
            names.update(d["name"] for d in info["dependencies"])
        document = {
            "packages": [self._package_json(n) for n in sorted(names)],
            "workspace_members": [
                self._package_json(m)["id"] for m in self.packages[owner]["members"]
            ],
            "target_directory": str(self.packages[owner]["root"] / "target"),
            "version": 1,
        }
        return CargoMetadata.model_validate(document)


@pytest.fixture
def workspace(tmp_path: Path) -> FakeWorkspace:
    return FakeWorkspace(tmp_path)


@pytest.fixture
def resolver(workspace: FakeWorkspace) -> Resolver:
    return Resolver(workspace.query)


@pytest.fixture
def kernel_workspace(workspace: FakeWorkspace) -> FakeWorkspace:
    """A kernel depending on a renamed bootloader, both with a local helper library."""
    workspace.add_package("x86_64-helpers", binaries=[])
    workspace.add_package(
        "rusty-loader",
        dependencies=[{"name": "x86_64-helpers", "local": "x86_64-helpers"}],
    )
    workspace.add_package(
        "kernel",
        dependencies=[
            {"name": "rusty-loader", "rename": "bootloader", "local": "rusty-loader"},
            {"name": "x86_64-helpers", "local": "x86_64-helpers"},
            {"name": "spin"},
        ],
        metadata={"glue_gun": {"run_args": ["-serial", "stdio"], "test_success_exit_code": 33}},
    )
    return workspace


def write_script(path: Path, body: str) -> Path:
    """Write an executable ``/bin/sh`` script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture(autouse=True)
def _propagate_package_logs() -> Iterator[None]:
    """Let caplog see glue_gun records even after configure_logging() disabled propagation."""
    logger = logging.getLogger("glue_gun")
    yield
    logger.propagate = True
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_script():
    """Factory writing executable shell scripts that stand in for external tools."""
    return write_script
