import argparse
import sys
from pathlib import Path
from typing import List, Optional

from glue_gun import env
from glue_gun.compile import Orchestrator, create_orchestrator
from glue_gun.config import CliOptions, ToolchainConfig
from glue_gun.data import BuildMetadata
from glue_gun.errors import GlueGunError, ToolExitNonzero
from glue_gun.logging import configure_logging, get_logger
from glue_gun.manifest import find_manifest
from glue_gun.run import run as run_emulator
from glue_gun.watch import WatchEngine, compute_watch_set

logger = get_logger("cli")


def _options(args: argparse.Namespace) -> CliOptions:
    return CliOptions(
        release=args.release,
        verbose=args.verbose,
        very_verbose=args.vv,
        kernel=args.kernel,
    )


def _build(args: argparse.Namespace, orchestrator: Orchestrator) -> BuildMetadata:
    options = _options(args)
    manifest_path = find_manifest(env.get_cargo_manifest_dir())
    logger.debug("Manifest path: %s", manifest_path)
    return orchestrator.build(
        manifest_path,
        kernel_exec=options.kernel,
        release=options.release,
        verbose=options.very_verbose,
    )


def build(args: argparse.Namespace, orchestrator: Orchestrator) -> int:
    """Build the ISO image."""
    metadata = _build(args, orchestrator)
    print(f"Iso for {metadata.iso_path.stem} -> {metadata.iso_path}")
    return 0


def run(args: argparse.Namespace, orchestrator: Orchestrator) -> int:
    """Build the ISO image and boot it in the emulator."""
    metadata = _build(args, orchestrator)
    return run_emulator(metadata, debug=args.debug)


def clean(args: argparse.Namespace, orchestrator: Orchestrator) -> int:
    """Clean the kernel and bootloader crates."""
    options = _options(args)
    manifest_path = find_manifest(env.get_cargo_manifest_dir())
    manifests = orchestrator.resolver.resolve_manifests(manifest_path)
    orchestrator.clean(
        manifests, clean_all=args.all, release=options.release, verbose=options.very_verbose
    )
    return 0


def watch(args: argparse.Namespace, orchestrator: Orchestrator) -> int:
    """Rebuild the ISO image whenever a source file changes."""
    options = _options(args)
    manifest_path = find_manifest(env.get_cargo_manifest_dir())
    manifests = orchestrator.resolver.resolve_manifests(manifest_path)
    watch_set = compute_watch_set(orchestrator.resolver, manifests.kernel, manifests.bootloader)

    def rebuild() -> None:
        metadata = orchestrator.build(
            manifest_path, release=options.release, verbose=options.very_verbose
        )
        logger.info("Iso for %s -> %s", metadata.iso_path.stem, metadata.iso_path)

    engine = WatchEngine(watch_set, rebuild, poll_interval=args.poll_interval)
    return engine.run()


def create_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Enables verbose mode")
    common.add_argument(
        "--vv", action="store_true", help="Enables very verbose mode (passes -vv to cargo)"
    )
    kernel_or_release = common.add_mutually_exclusive_group()
    kernel_or_release.add_argument(
        "-k", "--kernel", type=Path, help="Path to a pre-built kernel executable"
    )
    kernel_or_release.add_argument(
        "-r", "--release", action="store_true", help="Building in release mode"
    )

    parser = argparse.ArgumentParser(
        prog="glue-gun",
        description="Glues together a rust bootloader and ELF kernel to generate a bootable "
        "ISO file",
    )
    command_subparsers = parser.add_subparsers(
        dest="command", required=True, help="Primary commands"
    )

    build_parser = command_subparsers.add_parser(
        "build", parents=[common], help="Builds the ISO file"
    )
    build_parser.set_defaults(func=build)

    run_parser = command_subparsers.add_parser(
        "run", parents=[common], help="Builds and runs the ISO file"
    )
    run_parser.add_argument(
        "-d", "--debug", action="store_true", help="Runs the emulator in debug mode"
    )
    run_parser.set_defaults(func=run)

    clean_parser = command_subparsers.add_parser(
        "clean", parents=[common], help="Cleans the kernel and bootloader crates"
    )
    clean_parser.add_argument(
        "--all", action="store_true", help="Also clean dependencies, not only the crates"
    )
    clean_parser.set_defaults(func=clean)

    watch_parser = command_subparsers.add_parser(
        "watch", parents=[common], help="Rebuilds the ISO file on source changes"
    )
    watch_parser.add_argument(
        "--poll-interval", type=float, default=0.5, help="Seconds between stop checks"
    )
    watch_parser.set_defaults(func=watch)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    log_level = "DEBUG" if args.verbose else (env.get_glue_gun_log_level() or "INFO")
    configure_logging(log_level)
    logger.debug("Args: %s", args)

    orchestrator = create_orchestrator(ToolchainConfig.from_env())
    try:
        return args.func(args, orchestrator)
    except ToolExitNonzero as e:
        if e.stderr:
            sys.stderr.write(e.stderr if e.stderr.endswith("\n") else e.stderr + "\n")
        logger.error("%s", e)
        return 1
    except GlueGunError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Filesystem error: %s", e)
        return 1


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
