"""Cargo invocation: building packages and collecting the executables they produce."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from glue_gun.data import BuildConfig
from glue_gun.errors import BuildError
from glue_gun.logging import get_logger
from glue_gun.utils import run_tool

logger = get_logger(__name__)

EnvBindings = Sequence[Tuple[str, str]]


def parse_executables(stdout: str) -> List[Path]:
    """Extract executable paths from cargo's ``--message-format json`` output.

    Every record with a non-empty ``executable`` field contributes one path, in emission order.
    Lines that are not JSON objects (e.g. output of build scripts) are skipped.

    Raises
    ------
    BuildError
        If a line starting with ``{`` is not valid JSON.
    """
    executables: List[Path] = []
    for line in stdout.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            raise BuildError(f"Failed parsing json from cargo: {line!r}") from e
        executable = record.get("executable")
        if executable:
            executables.append(Path(executable))
    return executables


class CargoBuilder:
    """Runs cargo build actions in a package directory.

    Examples
    --------
    >>> builder = CargoBuilder()
    >>> builder.build(Path("kernel"), release=True)
    [PosixPath('/work/kernel/target/x86_64-os/release/kernel')]
    """

    def __init__(self, cargo: str = "cargo") -> None:
        self._cargo = cargo

    def _build_args(
        self,
        config: Optional[BuildConfig],
        release: bool,
        verbose: bool,
        features: Optional[Sequence[str]],
    ) -> List[str]:
        args = [self._cargo]
        if config is not None:
            args.extend(config.build_command)
        else:
            args.append("build")
        if features:
            args.append(f"--features={','.join(features)}")
        if release:
            args.append("--release")
        if verbose:
            args.append("-vv")
        return args

    def build(
        self,
        root_path: Path,
        config: Optional[BuildConfig] = None,
        release: bool = False,
        verbose: bool = False,
        features: Optional[Sequence[str]] = None,
        env: Optional[EnvBindings] = None,
    ) -> List[Path]:
        """Build the package in ``root_path`` and return the executables it produced.

        When ``verbose`` is set, a first invocation with inherited output shows cargo's human
        readable progress, and a second invocation in JSON mode collects the executables.
        Otherwise only the JSON invocation runs. The two output modes are never mixed in one
        invocation.

        Parameters
        ----------
        root_path : Path
            The package directory; cargo runs with it as working directory.
        config : BuildConfig, optional
            Supplies ``build_command``, replacing the default ``build`` action.
        release : bool
            Pass ``--release``.
        verbose : bool
            Pass ``-vv`` and show cargo's human readable output.
        features : Sequence[str], optional
            Cargo features to enable.
        env : Sequence[Tuple[str, str]], optional
            Environment bindings for the cargo process.

        Returns
        -------
        List[Path]
            The produced executables in the order cargo reported them.

        Raises
        ------
        ToolExitNonzero
            If cargo exits with a non-zero status.
        """
        logger.info("Building crate %s", Path(root_path).name)
        args = self._build_args(config, release, verbose, features)
        env_map = dict(env) if env else None

        if verbose:
            run_tool(
                args,
                stage=f"cargo build {Path(root_path).name}",
                cwd=root_path,
                env=env_map,
                capture_stderr=False,
            )

        result = run_tool(
            args + ["--message-format", "json"],
            stage=f"cargo build {Path(root_path).name}",
            cwd=root_path,
            env=env_map,
            capture_stdout=True,
        )
        executables = parse_executables(result.stdout)
        logger.debug("Executables: %s", [str(e) for e in executables])
        return executables

    def clean(
        self,
        root_path: Path,
        crate_names: Optional[Sequence[str]] = None,
        release: bool = False,
        verbose: bool = False,
    ) -> None:
        """Run ``cargo clean`` in ``root_path``.

        Parameters
        ----------
        root_path : Path
            The package directory.
        crate_names : Sequence[str], optional
            Restrict cleaning to these crates (one ``--package`` each). None cleans everything.
        release : bool
            Only clean release artifacts.
        verbose : bool
            Pass ``-vv``.
        """
        logger.info("Cleaning crate %s", Path(root_path).name)
        args = [self._cargo, "clean"]
        for name in crate_names or []:
            args.extend(["--package", name])
        if verbose:
            args.append("-vv")
        if release:
            args.append("--release")
        run_tool(
            args, stage=f"cargo clean {Path(root_path).name}", cwd=root_path, capture_stderr=False
        )
