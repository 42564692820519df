"""Build variant classification and the result of one orchestration run."""

from enum import Enum
from pathlib import Path

from .config import BuildConfig
from .utils import BaseModelWithDocstrings, FrozenModelWithDocstrings

TEST_HARNESS_PREFIX = "rustdoctest"
"""Directory name prefix cargo uses for doctest executables."""

DEPENDENCY_ARTIFACTS_DIR = "deps"
"""Directory cargo places test harness executables in."""

RELEASE_DIR = "release"
"""Profile directory name of optimized builds."""


class Profile(str, Enum):
    """The optimization profile of a build."""

    DEBUG = "debug"
    """Unoptimized build with debug assertions."""
    RELEASE = "release"
    """Optimized build."""


class Harness(str, Enum):
    """Whether the payload is a regular binary or a test harness."""

    NORMAL = "normal"
    """A regular binary target."""
    TEST = "test"
    """A unit test, integration test or doctest harness."""


class BuildVariant(FrozenModelWithDocstrings):
    """The (profile x harness) classification of a payload build.

    The variant is derived purely from the directory the payload executable was written to,
    never from command line flags: a caller may hand in an executable that was built elsewhere
    (e.g., by ``cargo test`` through a runner).
    """

    profile: Profile
    """Debug or release."""
    harness: Harness
    """Normal binary or test harness."""

    @classmethod
    def from_output_dir(cls, output_dir: Path) -> "BuildVariant":
        """Classify a build from the directory holding the payload executable.

        Parameters
        ----------
        output_dir : Path
            The parent directory of the payload executable, e.g.
            ``target/x86_64-os/release`` or ``target/x86_64-os/debug/deps``.

        Returns
        -------
        BuildVariant
            The classified variant.

        Examples
        --------
        >>> BuildVariant.from_output_dir(Path("target/release")).profile
        <Profile.RELEASE: 'release'>
        >>> BuildVariant.from_output_dir(Path("target/debug/deps")).harness
        <Harness.TEST: 'test'>
        """
        parts = output_dir.parts
        is_release = bool(parts) and parts[-1] == RELEASE_DIR
        is_doctest = output_dir.name.startswith(TEST_HARNESS_PREFIX)
        is_test = is_doctest or (bool(parts) and parts[-1] == DEPENDENCY_ARTIFACTS_DIR)
        return cls(
            profile=Profile.RELEASE if is_release else Profile.DEBUG,
            harness=Harness.TEST if is_test else Harness.NORMAL,
        )

    @property
    def is_release(self) -> bool:
        return self.profile == Profile.RELEASE

    @property
    def is_test(self) -> bool:
        return self.harness == Harness.TEST


class BuildMetadata(BaseModelWithDocstrings):
    """The terminal artifact of one orchestration run."""

    config: BuildConfig
    """The payload package configuration the build used."""
    iso_path: Path
    """The bootable ISO image that was written."""
    variant: BuildVariant
    """The classification of the payload build."""
