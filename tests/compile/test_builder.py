import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

from glue_gun.compile import builder as builder_module
from glue_gun.compile.builder import CargoBuilder, parse_executables
from glue_gun.data import BuildConfig
from glue_gun.errors import BuildError, ToolExitNonzero


class _Completed:
    def __init__(self, stdout: str = "") -> None:
        self.stdout = stdout
        self.stderr = ""
        self.returncode = 0


def _artifact(executable: Any) -> str:
    return json.dumps(
        {
            "reason": "compiler-artifact",
            "target": {"name": "kernel", "kind": ["bin"]},
            "filenames": ["/t/debug/kernel"],
            "executable": executable,
        }
    )


CARGO_OUTPUT = "\n".join(
    [
        json.dumps({"reason": "build-script-executed", "package_id": "x"}),
        _artifact(None),
        "   Compiling kernel v0.1.0",
        _artifact("/t/debug/kernel"),
        _artifact(""),
        _artifact("/t/debug/deps/kernel-abc"),
        json.dumps({"reason": "build-finished", "success": True}),
    ]
)


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> List[Dict[str, Any]]:
    recorded: List[Dict[str, Any]] = []

    def fake_run_tool(cmd, **kwargs):
        recorded.append({"cmd": [str(c) for c in cmd], **kwargs})
        return _Completed(CARGO_OUTPUT if kwargs.get("capture_stdout") else "")

    monkeypatch.setattr(builder_module, "run_tool", fake_run_tool)
    return recorded


def test_parse_executables():
    assert parse_executables(CARGO_OUTPUT) == [
        Path("/t/debug/kernel"),
        Path("/t/debug/deps/kernel-abc"),
    ]
    assert parse_executables("") == []


def test_parse_executables_invalid_json():
    with pytest.raises(BuildError):
        parse_executables('{"executable": ')


def test_build_default_command(calls, tmp_path: Path):
    exes = CargoBuilder("cargo").build(tmp_path)
    assert exes == [Path("/t/debug/kernel"), Path("/t/debug/deps/kernel-abc")]
    assert len(calls) == 1
    assert calls[0]["cmd"] == ["cargo", "build", "--message-format", "json"]
    assert calls[0]["cwd"] == tmp_path
    assert calls[0]["capture_stdout"] is True
    assert calls[0]["env"] is None


def test_build_config_overrides_action_but_keeps_flags(calls, tmp_path: Path):
    config = BuildConfig(build_command=["xbuild", "--target", "x86_64-os.json"])
    CargoBuilder("/opt/cargo").build(
        tmp_path,
        config,
        release=True,
        features=["binary", "map_physical_memory"],
        env=[("KERNEL", "/k/kernel")],
    )
    assert calls[0]["cmd"] == [
        "/opt/cargo",
        "xbuild",
        "--target",
        "x86_64-os.json",
        "--features=binary,map_physical_memory",
        "--release",
        "--message-format",
        "json",
    ]
    assert calls[0]["env"] == {"KERNEL": "/k/kernel"}


def test_build_verbose_runs_human_and_json_passes_separately(calls, tmp_path: Path):
    CargoBuilder().build(tmp_path, verbose=True)
    assert len(calls) == 2
    human, structured = calls
    assert human["cmd"] == ["cargo", "build", "-vv"]
    assert human["capture_stderr"] is False
    assert not human.get("capture_stdout")
    assert structured["cmd"] == ["cargo", "build", "-vv", "--message-format", "json"]
    assert structured["capture_stdout"] is True


def test_build_failure_propagates(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    def failing_run_tool(cmd, **kwargs):
        raise ToolExitNonzero(cmd, 101, "error[E0425]: cannot find value", stage=kwargs["stage"])

    monkeypatch.setattr(builder_module, "run_tool", failing_run_tool)
    with pytest.raises(ToolExitNonzero) as exc:
        CargoBuilder().build(tmp_path)
    assert exc.value.returncode == 101
    assert "E0425" in exc.value.stderr


def test_clean(calls, tmp_path: Path):
    builder = CargoBuilder()
    builder.clean(tmp_path, ["kernel", "kernel-macros"], release=True, verbose=True)
    builder.clean(tmp_path, None)
    assert calls[0]["cmd"] == [
        "cargo",
        "clean",
        "--package",
        "kernel",
        "--package",
        "kernel-macros",
        "-vv",
        "--release",
    ]
    assert calls[1]["cmd"] == ["cargo", "clean"]


if __name__ == "__main__":
    pytest.main(sys.argv)
