import sys

import pytest

from glue_gun.errors import ToolExitNonzero, ToolNotFound
from glue_gun.utils import format_command, run_tool


def test_format_command():
    assert format_command(["cargo", "build", "--features=a,b"]) == "cargo build --features=a,b"
    assert format_command(["grub-mkrescue", "-o", "my kernel.iso"]) == (
        "grub-mkrescue -o 'my kernel.iso'"
    )


def test_run_tool_captures_stdout():
    result = run_tool(
        [sys.executable, "-c", "print('hello')"], stage="test", capture_stdout=True
    )
    assert result.returncode == 0
    assert result.stdout == "hello\n"


def test_run_tool_adds_env(monkeypatch):
    monkeypatch.setenv("GLUE_GUN_INHERITED", "yes")
    code = "import os; print(os.environ['KERNEL'], os.environ['GLUE_GUN_INHERITED'])"
    result = run_tool(
        [sys.executable, "-c", code],
        stage="test",
        env={"KERNEL": "/work/kernel"},
        capture_stdout=True,
    )
    assert result.stdout.split() == ["/work/kernel", "yes"]


def test_run_tool_cwd(tmp_path):
    result = run_tool(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        stage="test",
        cwd=tmp_path,
        capture_stdout=True,
    )
    assert result.stdout.strip() == str(tmp_path)


def test_run_tool_nonzero_exit():
    code = "import sys; sys.stderr.write('linker failed\\n'); sys.exit(101)"
    with pytest.raises(ToolExitNonzero) as exc:
        run_tool([sys.executable, "-c", code], stage="kernel")
    assert exc.value.returncode == 101
    assert exc.value.stderr == "linker failed\n"
    assert exc.value.stage == "kernel"
    assert str(exc.value).startswith("[kernel]")


def test_run_tool_missing_program():
    with pytest.raises(ToolNotFound) as exc:
        run_tool(["glue-gun-no-such-tool"], stage="iso")
    assert exc.value.tool == "glue-gun-no-such-tool"
    assert exc.value.stage == "iso"


if __name__ == "__main__":
    pytest.main(sys.argv)
