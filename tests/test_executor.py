"""Tests for ToolExecutor, ScriptTool invocation and the process runners."""

from __future__ import annotations

from pathlib import Path

import pytest

from toolloop.toolkit import (
    DirectRunner,
    DockerRunner,
    FunctionTool,
    ToolExecutor,
    ToolRegistry,
    ToolResult,
    build_cli_args,
)
from toolloop.toolkit.sandbox import CompletedRun

from tests.conftest import write_tool


def _registry(tools_dir: Path) -> ToolRegistry:
    return ToolRegistry.discover(tools_dir)


# ---------------------------------------------------------------------------
# Argument flattening
# ---------------------------------------------------------------------------


class TestBuildCliArgs:
    def test_key_order_preserved(self):
        assert build_cli_args({"lon": 13.41, "lat": 52.52}) == ["--lon", "13.41", "--lat", "52.52"]

    def test_empty_object(self):
        assert build_cli_args({}) == []

    def test_value_rendering(self):
        args = build_cli_args({
            "text": "hello world",
            "count": 3,
            "flag": True,
            "off": False,
            "nothing": None,
            "items": [1, "a"],
            "nested": {"k": 1},
        })
        assert args == [
            "--text", "hello world",
            "--count", "3",
            "--flag", "true",
            "--off", "false",
            "--nothing", "null",
            "--items", '[1,"a"]',
            "--nested", '{"k":1}',
        ]


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestExecute:
    def test_calculator(self, tools_dir, calculator):
        result = ToolExecutor(_registry(tools_dir)).execute("calculate", {"expression": "25 * 4"})

        assert result.success
        assert result.exit_code == 0
        assert result.content.strip() == "25 * 4 = 100"

    def test_arguments_reach_script_in_order(self, tools_dir):
        write_tool(tools_dir, "echo.sh", name="echo")
        result = ToolExecutor(_registry(tools_dir)).execute(
            "echo", {"query": "rust async", "limit": 5}
        )
        assert result.output.splitlines() == ["[--query]", "[rust async]", "[--limit]", "[5]"]

    def test_unknown_tool(self, tools_dir, calculator):
        result = ToolExecutor(_registry(tools_dir)).execute("nonexistent", {})

        assert not result.success
        assert result.content == "Error: Tool script not found for nonexistent"

    def test_nonzero_exit_keeps_output(self, tools_dir, calculator):
        result = ToolExecutor(_registry(tools_dir)).execute("calculate", {})

        assert not result.success
        assert result.exit_code == 1
        assert "Expression is required" in result.content

    def test_nonzero_exit_without_output(self, tools_dir):
        write_tool(tools_dir, "fail.sh", name="fail", body="exit 4\n")
        result = ToolExecutor(_registry(tools_dir)).execute("fail", {})

        assert result.exit_code == 4
        assert result.content == "Error: fail exited with status 4"

    def test_stderr_captured(self, tools_dir):
        write_tool(tools_dir, "warn.sh", name="warn", body="echo out\necho err >&2\n")
        result = ToolExecutor(_registry(tools_dir)).execute("warn", {})
        assert result.output.splitlines() == ["out", "err"]

    def test_timeout(self, tools_dir):
        write_tool(tools_dir, "slow.sh", name="slow", body="exec sleep 5\n")
        executor = ToolExecutor(_registry(tools_dir), timeout=0.5)

        result = executor.execute("slow", {})

        assert result.timed_out
        assert not result.success
        assert "timed out after 0.5s" in result.content

    def test_resolves_first_of_duplicates(self, tools_dir):
        write_tool(tools_dir, "a.sh", name="dup", body="echo first\n")
        write_tool(tools_dir, "b.sh", name="dup", body="echo second\n")
        result = ToolExecutor(_registry(tools_dir)).execute("dup", {})
        assert result.output.strip() == "first"

    def test_function_tool(self):
        registry = ToolRegistry()
        registry.register(FunctionTool("add", "Add numbers", {"type": "object"}, lambda a, b: a + b))
        result = ToolExecutor(registry).execute("add", {"a": 2, "b": 3})
        assert result.success
        assert result.content == "5"

    def test_function_tool_exception(self):
        def explode():
            raise ValueError("kaboom")

        registry = ToolRegistry()
        registry.register(FunctionTool("explode", "Fails", {"type": "object"}, explode))
        result = ToolExecutor(registry).execute("explode", {})
        assert not result.success
        assert result.content == "Error: ValueError: kaboom"

    def test_raising_tool_does_not_escape(self):
        class Broken:
            definition = FunctionTool("broken", "d", {}, lambda: "").definition

            def invoke(self, arguments, *, timeout=None):
                raise RuntimeError("bad tool")

        registry = ToolRegistry()
        registry.register(Broken())
        result = ToolExecutor(registry).execute("broken", {})
        assert result.content == "Error: RuntimeError: bad tool"

    def test_available_tools(self, tools_dir, calculator):
        assert ToolExecutor(_registry(tools_dir)).available_tools() == ["calculate"]


class TestToolResultContent:
    def test_success(self):
        assert ToolResult("t", True, output="42\n").content == "42\n"

    def test_timeout_with_partial_output(self):
        result = ToolResult("t", False, output="partial", error="Tool t timed out after 1s", timed_out=True)
        assert result.content == "Error: Tool t timed out after 1s\npartial"

    def test_failure_with_output_carries_exit_status(self):
        result = ToolResult("t", False, output="boom\n", error="t exited with status 2", exit_code=2)
        assert result.content == "boom\n(exit status 2)"

    def test_failure_marker_reaches_model(self, tools_dir, calculator):
        result = ToolExecutor(_registry(tools_dir)).execute("calculate", {})
        assert result.content.endswith("\n(exit status 1)")


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------


class TestRunners:
    def test_direct_command(self):
        assert DirectRunner().command(Path("/tools/calc.sh"), ["--x", "1"]) == ["/tools/calc.sh", "--x", "1"]

    def test_docker_command(self):
        runner = DockerRunner("tools:latest", extra_args=["--network", "none"])
        assert runner.command(Path("/tools/calc.sh"), ["--x", "1"]) == [
            "docker", "run", "--rm", "--network", "none", "tools:latest", "calc.sh", "--x", "1",
        ]

    def test_docker_command_with_name(self):
        argv = DockerRunner("img").command(Path("/tools/calc.sh"), [], name="toolloop-abc")
        assert argv == ["docker", "run", "--rm", "--name", "toolloop-abc", "img", "calc.sh"]

    def test_docker_timeout_kills_container(self, tmp_path, tools_dir):
        log = tmp_path / "docker.log"
        fake_docker = tmp_path / "docker"
        fake_docker.write_text(
            "#!/bin/sh\n"
            f"printf '%s\\n' \"$*\" >> {log}\n"
            'if [ "$1" = run ]; then exec sleep 3; fi\n'
        )
        fake_docker.chmod(0o755)
        write_tool(tools_dir, "slow.sh", name="slow")

        registry = ToolRegistry.discover(tools_dir, runner=DockerRunner("tools", docker=str(fake_docker)))
        result = ToolExecutor(registry, timeout=0.5).execute("slow", {})

        assert result.timed_out
        run_line, kill_line = log.read_text().splitlines()
        assert run_line.startswith("run --rm --name toolloop-")
        name = run_line.split()[3]
        assert kill_line == f"kill {name}"

    def test_failed_kill_is_logged(self, tmp_path, caplog):
        fake_docker = tmp_path / "docker"
        fake_docker.write_text("#!/bin/sh\nexit 1\n")
        fake_docker.chmod(0o755)

        DockerRunner("img", docker=str(fake_docker)).kill("toolloop-gone")

        assert "docker kill toolloop-gone exited with status 1" in caplog.text

    def test_custom_runner_used_for_invocation(self, tools_dir, calculator):
        calls = []

        class RecordingRunner(DirectRunner):
            def run(self, script, args, *, timeout):
                calls.append((script.name, list(args), timeout))
                return CompletedRun(returncode=0, output="sandboxed")

        registry = ToolRegistry.discover(tools_dir, runner=RecordingRunner())
        result = ToolExecutor(registry, timeout=7).execute("calculate", {"expression": "1+1"})

        assert result.content == "sandboxed"
        assert calls == [("calculator.sh", ["--expression", "1+1"], 7)]

    def test_missing_docker_binary(self, tools_dir, calculator):
        registry = ToolRegistry.discover(
            tools_dir, runner=DockerRunner("img", docker="/nonexistent/docker")
        )
        result = ToolExecutor(registry).execute("calculate", {"expression": "1"})
        assert not result.success
        assert "could not be started" in result.content


@pytest.mark.parametrize("value,expected", [("", ""), ("x", "x"), (0, "0"), (1.5, "1.5")])
def test_scalar_values(value, expected):
    assert build_cli_args({"v": value}) == ["--v", expected]
