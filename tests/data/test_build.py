import sys
from pathlib import Path

import pytest

from glue_gun.data import BuildConfig, BuildMetadata, BuildVariant, Harness, Profile


@pytest.mark.parametrize(
    "output_dir, profile, harness",
    [
        ("target/x86_64-os/release", Profile.RELEASE, Harness.NORMAL),
        ("target/x86_64-os/debug", Profile.DEBUG, Harness.NORMAL),
        ("/abs/target/release", Profile.RELEASE, Harness.NORMAL),
        ("target/x86_64-os/debug/deps", Profile.DEBUG, Harness.TEST),
        ("/tmp/rustdoctestXyz12", Profile.DEBUG, Harness.TEST),
    ],
)
def test_variant_from_output_dir(output_dir, profile, harness):
    variant = BuildVariant.from_output_dir(Path(output_dir))
    assert variant.profile == profile
    assert variant.harness == harness


def test_variant_test_harness_regardless_of_profile():
    assert BuildVariant.from_output_dir(Path("target/release/deps")).is_test
    assert BuildVariant.from_output_dir(Path("target/debug/deps")).is_test


def test_variant_only_trailing_component_counts():
    # A "release" directory higher up the tree does not make a release build
    variant = BuildVariant.from_output_dir(Path("/home/me/release/kernel/target/debug"))
    assert not variant.is_release
    # Neither does a name that merely contains the marker
    assert not BuildVariant.from_output_dir(Path("target/prerelease")).is_release
    assert not BuildVariant.from_output_dir(Path("target/debug/mydeps")).is_test


def test_variant_is_immutable_and_hashable():
    variant = BuildVariant(profile=Profile.DEBUG, harness=Harness.NORMAL)
    with pytest.raises(ValueError):
        variant.profile = Profile.RELEASE  # type: ignore[misc]
    assert variant in {BuildVariant.from_output_dir(Path("target/debug"))}


def test_build_metadata():
    metadata = BuildMetadata(
        config=BuildConfig(),
        iso_path=Path("target/debug/kernel.iso"),
        variant=BuildVariant(profile="release", harness="test"),
    )
    assert metadata.variant.is_release
    assert metadata.variant.is_test
    assert metadata.iso_path.name == "kernel.iso"


if __name__ == "__main__":
    pytest.main(sys.argv)
