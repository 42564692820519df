"""Build pipeline package.

This package drives the external tools that turn a kernel crate into a bootable image:
- CargoBuilder: Runs cargo builds and collects the produced executables
- SymbolExtractor: Splits debug symbols out with llvm-objcopy
- IsoAssembler: Stages a GRUB boot tree and runs grub-mkrescue
- Orchestrator: Sequences the steps above and returns BuildMetadata

The typical workflow is:
1. Create the orchestrator: orchestrator = create_orchestrator(toolchain)
2. Build: metadata = orchestrator.build(manifest_path)
3. Use metadata.iso_path
"""

from __future__ import annotations

from glue_gun.config import ToolchainConfig
from glue_gun.manifest import Resolver, cargo_metadata_query

from .builder import CargoBuilder, parse_executables
from .iso import GRUB_CFG, IsoAssembler
from .orchestrator import BuildContext, Orchestrator
from .symbols import SymbolExtractor, find_llvm_objcopy


def create_orchestrator(toolchain: ToolchainConfig) -> Orchestrator:
    """Wire an :class:`Orchestrator` to the tools named by ``toolchain``."""
    return Orchestrator(
        resolver=Resolver(cargo_metadata_query(toolchain.cargo)),
        builder=CargoBuilder(toolchain.cargo),
        symbol_extractor=lambda: SymbolExtractor.locate(
            toolchain.objcopy, toolchain.rustc, toolchain.symbol_merge_tool
        ),
        iso_assembler=IsoAssembler(toolchain.iso_tool),
    )


__all__ = [
    "BuildContext",
    "CargoBuilder",
    "GRUB_CFG",
    "IsoAssembler",
    "Orchestrator",
    "SymbolExtractor",
    "create_orchestrator",
    "find_llvm_objcopy",
    "parse_executables",
]
