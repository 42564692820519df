"""Bootable ISO assembly with grub-mkrescue."""

from __future__ import annotations

import shutil
from pathlib import Path

from glue_gun.logging import get_logger
from glue_gun.utils import run_tool

logger = get_logger(__name__)

STAGING_DIR_NAME = "isofiles"
"""Name of the staging directory created next to the payload executable."""

KERNEL_IMAGE_PATH = "boot/kernel.elf"
"""Location of the merged executable inside the image."""

GRUB_CFG_PATH = "boot/grub/grub.cfg"
"""Location of the boot menu configuration inside the image."""

GRUB_CFG = f"""\
set timeout=0
set default=0

menuentry "kernel" {{
    multiboot2 /{KERNEL_IMAGE_PATH}
    boot
}}
"""


class IsoAssembler:
    """Stages a GRUB boot tree around an executable and packs it into an ISO.

    The staging layout is::

        isofiles/
        └── boot/
            ├── grub/grub.cfg
            └── kernel.elf
    """

    def __init__(self, iso_tool: str = "grub-mkrescue") -> None:
        self._iso_tool = iso_tool

    def stage(self, staging_dir: Path, executable: Path) -> Path:
        """Write the boot tree for ``executable`` into ``staging_dir``.

        Existing directories and files are reused and overwritten. Any filesystem error other
        than an already existing directory propagates.

        Returns
        -------
        Path
            The path of the staged executable.
        """
        grub_cfg = staging_dir / GRUB_CFG_PATH
        grub_cfg.parent.mkdir(parents=True, exist_ok=True)
        grub_cfg.write_text(GRUB_CFG)

        staged_executable = staging_dir / KERNEL_IMAGE_PATH
        shutil.copyfile(executable, staged_executable)
        return staged_executable

    def assemble(self, staging_dir: Path, iso_path: Path, executable: Path) -> Path:
        """Stage ``executable`` and build the ISO image ``iso_path`` from the staging tree.

        Raises
        ------
        ToolNotFound
            If the ISO tool is not installed.
        ToolExitNonzero
            If the ISO tool fails. The error carries the tool's stderr.
        """
        self.stage(staging_dir, executable)
        run_tool([self._iso_tool, "-o", iso_path, staging_dir], stage="iso")
        logger.info("Created Iso image at: %s", iso_path)
        return iso_path
