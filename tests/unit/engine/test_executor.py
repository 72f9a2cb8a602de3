"""Unit tests for the concurrent tool executor, using real interpreter subprocesses."""
import asyncio
import sys
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from stegforge.base.options import RunOptions
from stegforge.engine.executor import ToolExecutor, describe_exit, format_seconds
from stegforge.engine.models import ToolStatus
from stegforge.errors import ErrorCode, NotApplicable
from stegforge.toolkit.registry import CommandSpec, ToolDescriptor


def _run(executor, tools, record, options=None):
    return asyncio.run(executor.run(tools, record, options or RunOptions()))


class TestFormatting:
    def test_format_seconds(self):
        assert format_seconds(60) == "60s"
        assert format_seconds(60.0) == "60s"
        assert format_seconds(0.5) == "0.5s"

    def test_describe_exit(self):
        assert describe_exit(3) == "exit status 3"
        assert describe_exit(-9) == "signal: SIGKILL"


class TestSingleTool:
    @pytest.mark.asyncio
    async def test_success_with_output(self, python_tool, png_record):
        tool = python_tool("hello", "print('hello world')")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())

        assert result.status == ToolStatus.OUTPUT
        assert result.output == "hello world"
        assert result.error is None
        assert result.command[0] == sys.executable
        assert result.duration > 0

    @pytest.mark.asyncio
    async def test_success_without_output(self, python_tool, png_record):
        tool = python_tool("quiet", "pass")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())
        assert result.status == ToolStatus.EMPTY
        assert not result.failed

    @pytest.mark.asyncio
    async def test_stderr_is_merged_into_output(self, python_tool, png_record):
        tool = python_tool("noisy", "import sys; sys.stderr.write('from stderr\\n')")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())
        assert result.output == "from stderr"

    @pytest.mark.asyncio
    async def test_output_is_trimmed(self, python_tool, png_record):
        tool = python_tool("padded", "print('\\n\\n  data  \\n\\n')")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())
        assert result.output == "data"

    @pytest.mark.asyncio
    async def test_nonzero_exit_with_output_is_success(self, python_tool, png_record):
        tool = python_tool("finder", "import sys; print('found hidden data'); sys.exit(1)")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())

        assert result.status == ToolStatus.OUTPUT
        assert result.output == "found hidden data"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_output_is_failure(self, python_tool, png_record):
        tool = python_tool("broken", "import sys; sys.exit(3)")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())

        assert result.status == ToolStatus.FAILED
        assert result.error == "exit status 3"
        assert result.error_code == ErrorCode.TOOL_EXEC_FAILED
        assert result.output == ""

    @pytest.mark.asyncio
    async def test_whitespace_only_output_counts_as_empty(self, python_tool, png_record):
        tool = python_tool("blank", "import sys; print('   '); sys.exit(2)")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())
        assert result.status == ToolStatus.FAILED
        assert result.error == "exit status 2"

    @pytest.mark.asyncio
    async def test_timeout_is_failure_mentioning_duration(self, python_tool, png_record):
        tool = python_tool("sleeper", "import time; print('partial', flush=True); time.sleep(30)")
        started = time.monotonic()
        result = await ToolExecutor(grace=0.5).run_tool(tool, png_record, RunOptions(timeout=0.5))
        elapsed = time.monotonic() - started

        assert result.status == ToolStatus.FAILED
        assert result.error_code == ErrorCode.TOOL_TIMEOUT
        assert "0.5s" in result.error
        assert result.error.startswith("timeout after")
        assert result.output == ""
        assert elapsed < 10

    @pytest.mark.asyncio
    async def test_missing_binary_skips_without_building(self, png_record):
        build = MagicMock()
        tool = ToolDescriptor(
            name="ghost", binary="stegforge-no-such-binary-xyz", category="image", build=build,
        )
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())

        assert result.skipped
        assert result.skip_reason == "stegforge-no-such-binary-xyz not installed"
        assert result.error_code == ErrorCode.TOOL_NOT_INSTALLED
        build.assert_not_called()

    @pytest.mark.asyncio
    async def test_injected_probe_decides_availability(self, python_tool, png_record):
        tool = python_tool("hello", "print('hi')")
        result = await ToolExecutor(probe=lambda name: False).run_tool(tool, png_record, RunOptions())
        assert result.skipped
        assert result.skip_reason.endswith("not installed")

    @pytest.mark.asyncio
    async def test_not_applicable_builder_skips_with_reason(self, png_record):
        def build(fp, opts):
            raise NotApplicable("rockyou.txt wordlist unavailable")

        tool = ToolDescriptor(name="stegseek", binary=sys.executable, category="image", build=build)
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())

        assert result.skipped
        assert result.skip_reason == "rockyou.txt wordlist unavailable"
        assert result.error_code == ErrorCode.TOOL_NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_default_not_applicable_reason(self, png_record):
        def build(fp, opts):
            raise NotApplicable()

        tool = ToolDescriptor(name="n/a", binary=sys.executable, category="text", build=build)
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())
        assert result.skip_reason == "command not applicable"

    @pytest.mark.asyncio
    async def test_binary_vanishing_before_spawn_is_a_skip(self, png_record):
        def build(fp, opts):
            return CommandSpec(("stegforge-no-such-binary-xyz", fp))

        tool = ToolDescriptor(name="racy", binary="stegforge-no-such-binary-xyz", category="image", build=build)
        result = await ToolExecutor(probe=lambda name: True).run_tool(tool, png_record, RunOptions())

        assert result.skipped
        assert result.skip_reason == "stegforge-no-such-binary-xyz not installed"
        assert result.error_code == ErrorCode.TOOL_NOT_INSTALLED

    @pytest.mark.asyncio
    async def test_unexecutable_command_is_failure(self, png_record, tmp_path):
        script = tmp_path / "not-executable"
        script.write_text("#!/bin/sh\necho hi\n")
        script.chmod(0o644)

        def build(fp, opts):
            return CommandSpec((str(script), fp))

        tool = ToolDescriptor(name="noexec", binary=sys.executable, category="general", build=build)
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())

        assert result.status == ToolStatus.FAILED
        assert result.error.startswith("failed to start:")
        assert result.error_code == ErrorCode.TOOL_EXEC_FAILED
        assert result.command == (str(script), png_record.path)

    @pytest.mark.asyncio
    async def test_file_path_is_passed_to_tool(self, python_tool, png_record):
        tool = python_tool("echo-path", "import sys; print(sys.argv[1])")
        result = await ToolExecutor().run_tool(tool, png_record, RunOptions())
        assert result.output == png_record.path


class TestBatch:
    def test_every_slot_is_populated_in_order(self, python_tool, png_record):
        def raises(fp, opts):
            raise NotApplicable()

        tools = [
            python_tool("a", "print('a')"),
            python_tool("b", "import sys; sys.exit(1)", category="image"),
            ToolDescriptor(name="c", binary="stegforge-no-such-binary-xyz", category="audio", build=MagicMock()),
            ToolDescriptor(name="d", binary=sys.executable, category="text", build=raises),
            python_tool("e", "import sys; print('e'); sys.exit(4)", category="text"),
        ]
        scan = _run(ToolExecutor(), tools, png_record)

        assert len(scan.results) == len(tools)
        assert all(r is not None for r in scan.results)
        assert [r.tool_name for r in scan.results] == ["a", "b", "c", "d", "e"]
        assert [r.status for r in scan.results] == [
            ToolStatus.OUTPUT, ToolStatus.FAILED, ToolStatus.SKIPPED, ToolStatus.SKIPPED, ToolStatus.OUTPUT,
        ]
        assert scan.file is png_record

    def test_empty_tool_list(self, png_record):
        scan = _run(ToolExecutor(), [], png_record)
        assert scan.results == []
        assert scan.summary().total == 0

    def test_tools_run_concurrently(self, python_tool, png_record):
        tools = [python_tool(f"sleep-{i}", "import time; time.sleep(1); print('done')") for i in range(4)]
        started = time.monotonic()
        scan = _run(ToolExecutor(), tools, png_record)
        elapsed = time.monotonic() - started

        assert all(r.status == ToolStatus.OUTPUT for r in scan.results)
        assert elapsed < 3.5
        assert scan.duration >= 1

    def test_timeout_does_not_affect_other_tools(self, python_tool, png_record):
        tools = [
            python_tool("slow", "import time; time.sleep(30)"),
            python_tool("fast", "print('fast')"),
        ]
        scan = _run(ToolExecutor(grace=0.5), tools, png_record, RunOptions(timeout=1))

        slow, fast = scan.results
        assert slow.error_code == ErrorCode.TOOL_TIMEOUT
        assert slow.error == "timeout after 1s"
        assert fast.output == "fast"

    def test_slow_builder_does_not_stall_siblings(self, python_tool, png_record):
        def slow_build(fp, opts):
            # Stands in for a wordlist download inside a builder
            time.sleep(3)
            return CommandSpec((sys.executable, "-c", "print('built late')"))

        tools = [
            ToolDescriptor(name="stegseek", binary=sys.executable, category="image", build=slow_build),
            python_tool("fast", "import time; time.sleep(0.2); print('fast')"),
        ]
        scan = _run(ToolExecutor(), tools, png_record, RunOptions(timeout=10))

        slow, fast = scan.results
        assert slow.output == "built late"
        assert fast.output == "fast"
        assert fast.duration < 2

    def test_builder_counts_against_tool_timeout(self, python_tool, png_record):
        def stuck_build(fp, opts):
            time.sleep(2.5)
            return CommandSpec((sys.executable, "-c", "print('too late')"))

        tools = [
            ToolDescriptor(name="stuck", binary=sys.executable, category="image", build=stuck_build),
            python_tool("fast", "print('fast')"),
        ]
        scan = _run(ToolExecutor(), tools, png_record, RunOptions(timeout=1))

        stuck, fast = scan.results
        assert stuck.error_code == ErrorCode.TOOL_TIMEOUT
        assert stuck.error == "timeout after 1s"
        assert stuck.command == ()
        assert fast.output == "fast"

    def test_on_result_fires_once_per_tool(self, python_tool, png_record):
        seen = []
        tools = [python_tool(f"t{i}", f"print({i})") for i in range(3)]
        _run(ToolExecutor(on_result=lambda idx, res: seen.append((idx, res.tool_name))), tools, png_record)
        assert sorted(seen) == [(0, "t0"), (1, "t1"), (2, "t2")]

    def test_unexpected_builder_error_fills_slot(self, png_record):
        def explode(fp, opts):
            raise RuntimeError("boom")

        tool = ToolDescriptor(name="bad", binary=sys.executable, category="general", build=explode)
        scan = _run(ToolExecutor(), [tool], png_record)

        assert scan.results[0].failed
        assert "boom" in scan.results[0].error

    def test_run_sync(self, python_tool, png_record):
        scan = ToolExecutor().run_sync([python_tool("x", "print('x')")], png_record, RunOptions())
        assert scan.results[0].output == "x"


def _process_gone(pid: int) -> bool:
    stat = Path(f"/proc/{pid}/stat")
    try:
        state = stat.read_text().rsplit(")", 1)[1].split()[0]
    except (OSError, IndexError):
        return True
    return state in ("Z", "X")


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="uses /proc")
def test_timeout_kills_whole_process_group(python_tool, png_record, tmp_path):
    pid_file = tmp_path / "child.pid"
    code = (
        "import subprocess, sys, time\n"
        "child = subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(60)'])\n"
        f"open({str(pid_file)!r}, 'w').write(str(child.pid))\n"
        "time.sleep(60)\n"
    )
    scan = _run(ToolExecutor(grace=0.5), [python_tool("spawner", code)], png_record, RunOptions(timeout=1.5))

    assert scan.results[0].error_code == ErrorCode.TOOL_TIMEOUT
    child_pid = int(pid_file.read_text())

    deadline = time.monotonic() + 5
    while not _process_gone(child_pid) and time.monotonic() < deadline:
        time.sleep(0.1)
    assert _process_gone(child_pid)
