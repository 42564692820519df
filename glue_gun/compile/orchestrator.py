"""The build pipeline gluing a kernel executable into a bootloader and an ISO image."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from glue_gun.data import BuildConfig, BuildMetadata, BuildVariant
from glue_gun.errors import CarrierProducedMultipleArtifacts, PayloadProducedMultipleArtifacts
from glue_gun.logging import get_logger
from glue_gun.manifest import Manifests, Resolver

from .builder import CargoBuilder
from .iso import STAGING_DIR_NAME, IsoAssembler
from .symbols import SymbolExtractor

logger = get_logger(__name__)

EMBED_FEATURE = "binary"
"""Bootloader feature that embeds the kernel given through :data:`KERNEL_ENV`."""

KERNEL_ENV = "KERNEL"
"""Environment variable the bootloader build script reads the kernel path from."""

BOOTLOADER_SYM_NAME = "bootloader.sym"
BOCHS_SYM_NAME = "combined.bochsym"


@dataclass
class BuildContext:
    """State handed from one pipeline step to the next."""

    kernel_exec: Path
    target_dir: Path
    variant: BuildVariant
    config: BuildConfig
    kernel_sym: Optional[Path] = field(default=None)
    merged_exe: Optional[Path] = field(default=None)
    bootloader_sym: Optional[Path] = field(default=None)
    bochs_sym: Optional[Path] = field(default=None)
    iso_path: Optional[Path] = field(default=None)


class Orchestrator:
    """Runs the build pipeline.

    The steps run strictly in order and the first failing step aborts the run. Nothing is
    cleaned up on failure; every step overwrites its outputs, so running the pipeline again is
    the way to recover.

    Parameters
    ----------
    resolver : Resolver
        Answers package questions from cargo metadata.
    builder : CargoBuilder
        Runs cargo builds.
    symbol_extractor : Callable[[], SymbolExtractor]
        Factory for the symbol extractor. Called when symbols are first needed, so that a
        missing llvm-objcopy is reported by the symbol step.
    iso_assembler : IsoAssembler
        Builds the ISO image.
    """

    def __init__(
        self,
        resolver: Resolver,
        builder: CargoBuilder,
        symbol_extractor: Callable[[], SymbolExtractor],
        iso_assembler: IsoAssembler,
    ) -> None:
        self._resolver = resolver
        self._builder = builder
        self._symbol_extractor_factory = symbol_extractor
        self._symbol_extractor: Optional[SymbolExtractor] = None
        self._iso_assembler = iso_assembler

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    @property
    def builder(self) -> CargoBuilder:
        return self._builder

    def _symbols(self) -> SymbolExtractor:
        if self._symbol_extractor is None:
            self._symbol_extractor = self._symbol_extractor_factory()
        return self._symbol_extractor

    def build_kernel(self, manifests: Manifests, release: bool, verbose: bool) -> Path:
        """Build the kernel package and return its executable.

        Raises
        ------
        PayloadProducedMultipleArtifacts
            If cargo reports zero or more than one executable.
        """
        executables = self._builder.build(
            manifests.kernel.root_path, None, release=release, verbose=verbose
        )
        if len(executables) != 1:
            raise PayloadProducedMultipleArtifacts(executables)
        return executables[0]

    def build(
        self,
        manifest_path: Path,
        kernel_exec: Optional[Path] = None,
        release: bool = False,
        verbose: bool = False,
    ) -> BuildMetadata:
        """Run the whole pipeline for the kernel package at ``manifest_path``.

        Parameters
        ----------
        manifest_path : Path
            The kernel's ``Cargo.toml``.
        kernel_exec : Path, optional
            A pre-built kernel executable. If None, the kernel package is built first.
        release : bool
            Build the kernel in release mode. Ignored when ``kernel_exec`` is given.
        verbose : bool
            Run cargo with ``-vv``.
        """
        manifests = self._resolver.resolve_manifests(manifest_path)
        if kernel_exec is None:
            kernel_exec = self.build_kernel(manifests, release, verbose)
        return self.glue(kernel_exec, manifests, verbose)

    def glue(self, kernel_exec: Path, manifests: Manifests, verbose: bool = False) -> BuildMetadata:
        """Glue an already built kernel executable into the bootloader and an ISO image.

        Returns
        -------
        BuildMetadata
            The configuration used, the written ISO and the build variant.
        """
        # Relative kernel paths are relative to the kernel crate
        kernel_exec = manifests.kernel.root_path / kernel_exec
        ctx = self.classify(kernel_exec, manifests.config)

        self.extract_kernel_symbols(ctx)
        self.build_bootloader(ctx, manifests, verbose)
        self.extract_bootloader_symbols(ctx)
        self.merge_symbols(ctx)
        self.assemble_iso(ctx)

        assert ctx.iso_path is not None
        return BuildMetadata(config=ctx.config, iso_path=ctx.iso_path, variant=ctx.variant)

    def classify(self, kernel_exec: Path, config: BuildConfig) -> BuildContext:
        """Derive the build variant from the directory the kernel executable lives in."""
        target_dir = kernel_exec.parent
        variant = BuildVariant.from_output_dir(target_dir)
        logger.debug("Building in release mode? %s", variant.is_release)
        logger.debug("Running a test? %s", variant.is_test)
        return BuildContext(
            kernel_exec=kernel_exec, target_dir=target_dir, variant=variant, config=config
        )

    def extract_kernel_symbols(self, ctx: BuildContext) -> Path:
        """Write ``<kernel>.sym`` next to the kernel, leaving the kernel untouched."""
        ctx.kernel_sym = ctx.target_dir / f"{ctx.kernel_exec.name}.sym"
        self._symbols().extract(ctx.kernel_exec, ctx.kernel_sym, strip_source=False)
        return ctx.kernel_sym

    def build_bootloader(self, ctx: BuildContext, manifests: Manifests, verbose: bool) -> Path:
        """Build the bootloader with the kernel embedded and name the result after the kernel.

        The bootloader executable is renamed in place, atomically, so debuggers looking for the
        kernel's file name find the merged executable.

        Raises
        ------
        CarrierProducedMultipleArtifacts
            If cargo reports zero or more than one executable.
        """
        executables: List[Path] = self._builder.build(
            manifests.bootloader.root_path,
            ctx.config,
            release=ctx.variant.is_release,
            verbose=verbose,
            features=[EMBED_FEATURE],
            env=[(KERNEL_ENV, str(ctx.kernel_exec))],
        )
        if len(executables) != 1:
            raise CarrierProducedMultipleArtifacts(executables)

        exe = executables[0]
        merged_exe = exe.parent / ctx.kernel_exec.name
        if exe != merged_exe:
            os.replace(exe, merged_exe)
        ctx.merged_exe = merged_exe
        logger.debug("Merged executable: %s", merged_exe)
        return merged_exe

    def extract_bootloader_symbols(self, ctx: BuildContext) -> Path:
        """Write ``bootloader.sym`` and strip the debug info from the merged executable."""
        assert ctx.merged_exe is not None
        ctx.bootloader_sym = ctx.target_dir / BOOTLOADER_SYM_NAME
        self._symbols().extract(ctx.merged_exe, ctx.bootloader_sym, strip_source=True)
        return ctx.bootloader_sym

    def merge_symbols(self, ctx: BuildContext) -> Optional[Path]:
        """Best-effort ``combined.bochsym`` for the bochs emulator."""
        assert ctx.bootloader_sym is not None and ctx.kernel_sym is not None
        ctx.bochs_sym = self._symbols().merge_symbols(
            [ctx.bootloader_sym, ctx.kernel_sym], ctx.target_dir / BOCHS_SYM_NAME
        )
        return ctx.bochs_sym

    def assemble_iso(self, ctx: BuildContext) -> Path:
        """Write ``<kernel>.iso`` next to the kernel."""
        assert ctx.merged_exe is not None
        iso_path = ctx.target_dir / f"{ctx.merged_exe.stem}.iso"
        staging_dir = ctx.target_dir / STAGING_DIR_NAME
        ctx.iso_path = self._iso_assembler.assemble(staging_dir, iso_path, ctx.merged_exe)
        return ctx.iso_path

    def clean(self, manifests: Manifests, clean_all: bool, release: bool, verbose: bool) -> None:
        """Run ``cargo clean`` for the kernel and the bootloader.

        Unless ``clean_all`` is set, only the crates of each package's own workspace are
        cleaned and dependencies stay cached.
        """
        for package in (manifests.kernel, manifests.bootloader):
            crate_names = None if clean_all else package.crate_names
            logger.debug("Crate %s names: %s", package.root_path, crate_names)
            self._builder.clean(package.root_path, crate_names, release=release, verbose=verbose)
