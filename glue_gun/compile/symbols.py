"""Debug symbol extraction with llvm-objcopy and optional bochs symbol merging."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from glue_gun.errors import ObjectToolFailed, ObjectToolMissing, ToolExitNonzero, ToolNotFound
from glue_gun.logging import get_logger
from glue_gun.utils import run_tool

logger = get_logger(__name__)

OBJCOPY_NAME = "llvm-objcopy"


def _rustc_output(rustc: str, *args: str) -> Optional[str]:
    try:
        result = subprocess.run([rustc, *args], capture_output=True, text=True)
    except FileNotFoundError:
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def find_llvm_objcopy(rustc: str = "rustc") -> Optional[Path]:
    """Locate ``llvm-objcopy`` from the rustup ``llvm-tools-preview`` component.

    Looks in ``<sysroot>/lib/rustlib/<host>/bin`` of the active toolchain first and falls back
    to an ``llvm-objcopy`` on ``PATH``.

    Returns
    -------
    Optional[Path]
        The tool path, or None if it cannot be found.
    """
    sysroot = _rustc_output(rustc, "--print", "sysroot")
    version = _rustc_output(rustc, "-vV")
    if sysroot and version:
        host = next(
            (
                line.split(":", 1)[1].strip()
                for line in version.splitlines()
                if line.startswith("host:")
            ),
            None,
        )
        if host:
            candidate = Path(sysroot.strip()) / "lib" / "rustlib" / host / "bin" / OBJCOPY_NAME
            if candidate.is_file():
                return candidate

    on_path = shutil.which(OBJCOPY_NAME)
    return Path(on_path) if on_path else None


class SymbolExtractor:
    """Splits debug information out of executables.

    Parameters
    ----------
    objcopy : Path
        The ``llvm-objcopy`` executable.
    merge_tool : str
        The ``bochsym`` executable used by :meth:`merge_symbols`.
    """

    def __init__(self, objcopy: Path, merge_tool: str = "bochsym") -> None:
        self._objcopy = objcopy
        self._merge_tool = merge_tool

    @classmethod
    def locate(
        cls, objcopy: Optional[Path] = None, rustc: str = "rustc", merge_tool: str = "bochsym"
    ) -> "SymbolExtractor":
        """Create an extractor, locating ``llvm-objcopy`` unless ``objcopy`` is given.

        Raises
        ------
        ObjectToolMissing
            If no ``llvm-objcopy`` can be found.
        """
        if objcopy is None:
            objcopy = find_llvm_objcopy(rustc)
        if objcopy is None:
            raise ObjectToolMissing()
        return cls(objcopy, merge_tool)

    def _objcopy_run(self, args: Sequence[Union[Path, str]]) -> None:
        try:
            run_tool([self._objcopy, *args], stage="symbols")
        except ToolNotFound as e:
            raise ObjectToolMissing() from e
        except ToolExitNonzero as e:
            raise ObjectToolFailed(e.command, e.returncode, e.stderr) from e

    def extract(self, in_path: Path, out_path: Path, strip_source: bool = False) -> None:
        """Copy the debug information of ``in_path`` into ``out_path``.

        Parameters
        ----------
        in_path : Path
            The executable to read.
        out_path : Path
            The symbol file to write. Overwritten if it exists.
        strip_source : bool
            Afterwards strip the debug information from ``in_path`` in place.

        Raises
        ------
        ObjectToolMissing
            If ``llvm-objcopy`` cannot be executed.
        ObjectToolFailed
            If either objcopy invocation exits with a non-zero status.
        """
        self._objcopy_run(["--only-keep-debug", in_path, out_path])
        logger.info("Created symbol file: %s", Path(out_path).name)

        if strip_source:
            self._objcopy_run(["--strip-debug", in_path, in_path])
            logger.debug("Stripped symbols from %s", in_path)

    def merge_symbols(self, symbol_files: Sequence[Path], out_path: Path) -> Optional[Path]:
        """Merge symbol files into one bochs emulator symbol file.

        This step is optional: if the merge tool is not installed a warning is logged and None
        is returned. A merge tool that runs and fails is still an error.

        Returns
        -------
        Optional[Path]
            ``out_path`` if the file was written, None if the tool is missing.

        Raises
        ------
        ToolExitNonzero
            If the merge tool exits with a non-zero status.
        """
        if shutil.which(self._merge_tool) is None:
            logger.warning(
                "Missing cli tool %s. Skipping creation of symbol file for bochs emulator",
                self._merge_tool,
            )
            return None

        cmd = [self._merge_tool]
        for symbol_file in symbol_files:
            cmd.extend(["--symfile", str(symbol_file)])
        cmd.extend(["-o", str(out_path)])
        try:
            run_tool(cmd, stage="bochs symbols")
        except ToolNotFound:
            logger.warning(
                "Missing cli tool %s. Skipping creation of symbol file for bochs emulator",
                self._merge_tool,
            )
            return None
        logger.info("Created bochs symbol file: %s", Path(out_path).name)
        return out_path
