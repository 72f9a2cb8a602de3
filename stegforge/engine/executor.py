# ============================================================================
# stegforge/engine/executor.py
# Concurrent Tool Executor
# ============================================================================
#
# PURPOSE:
# Runs every applicable tool against one file at the same time and returns
# exactly one ToolResult per tool, at the tool's position in the filtered list.
#
# HOW IT WORKS:
# 1. One asyncio task per tool, all launched at once (no pool, no queue)
# 2. Each task probes PATH, builds its command in a worker thread (builders
#    may fetch a wordlist) and spawns the subprocess in its own process group
#    with stdout+stderr merged
# 3. Each task owns its deadline; on expiry the whole process group gets
#    SIGTERM, then SIGKILL after a grace period
# 4. asyncio.gather is the join barrier; each task writes only its own slot
#
# EXIT CODE POLICY:
# A non-zero exit with non-empty output is reported as SUCCESS. Many analysis
# tools (zsteg, pngcheck, steghide, binwalk) exit non-zero to say "found
# something" or "partially parsed". The flip side: a tool that prints an error
# message and exits 1 shows up as a success carrying that message. Only a
# non-zero exit with empty output is a failure.
#
# ============================================================================

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from typing import Callable, List, Optional, Sequence

from stegforge.base.options import RunOptions
from stegforge.engine.models import ScanResult, ToolResult
from stegforge.errors import ErrorCode, NotApplicable, ProcessError, ToolMissing, ToolTimeout
from stegforge.toolkit.filetype import FileRecord
from stegforge.toolkit.probe import Probe, binary_available, resolve_binary
from stegforge.toolkit.registry import CommandSpec, ToolDescriptor

logger = logging.getLogger(__name__)

# Seconds between SIGTERM and SIGKILL for a timed-out process group
TERMINATE_GRACE_SECONDS = 2.0

ResultCallback = Callable[[int, ToolResult], None]


def format_seconds(seconds: float) -> str:
    if float(seconds).is_integer():
        return f"{int(seconds)}s"
    return f"{seconds:g}s"


def describe_exit(returncode: int) -> str:
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


class ToolExecutor:
    """
    Fans a filtered tool list out into concurrent subprocesses.

    Args:
        probe: PATH lookup used before each tool runs (live, never cached)
        on_result: Optional callback fired as each slot is filled
        grace: Seconds between SIGTERM and SIGKILL on timeout
    """

    def __init__(
        self,
        probe: Probe = binary_available,
        on_result: Optional[ResultCallback] = None,
        grace: float = TERMINATE_GRACE_SECONDS,
    ):
        self.probe = probe
        self.on_result = on_result
        self.grace = grace

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def run(
        self,
        tools: Sequence[ToolDescriptor],
        file_record: FileRecord,
        options: RunOptions,
    ) -> ScanResult:
        results: List[Optional[ToolResult]] = [None] * len(tools)

        started = time.monotonic()
        await asyncio.gather(*(
            self._fill_slot(results, idx, tool, file_record, options)
            for idx, tool in enumerate(tools)
        ))
        duration = time.monotonic() - started

        return ScanResult(file=file_record, results=results, duration=duration)

    def run_sync(
        self,
        tools: Sequence[ToolDescriptor],
        file_record: FileRecord,
        options: RunOptions,
    ) -> ScanResult:
        return asyncio.run(self.run(tools, file_record, options))

    # ------------------------------------------------------------------
    # Per-tool task
    # ------------------------------------------------------------------
    async def _fill_slot(
        self,
        results: List[Optional[ToolResult]],
        idx: int,
        tool: ToolDescriptor,
        file_record: FileRecord,
        options: RunOptions,
    ) -> None:
        try:
            result = await self.run_tool(tool, file_record, options)
        except Exception as exc:
            # A broken builder must not leave an empty slot or sink the batch
            logger.exception(f"[{tool.name}] unexpected error")
            result = ToolResult.failure(
                tool.name, tool.category, f"internal error: {exc}", ErrorCode.TOOL_EXEC_FAILED, 0.0
            )
        results[idx] = result
        if self.on_result is not None:
            self.on_result(idx, result)

    async def run_tool(self, tool: ToolDescriptor, file_record: FileRecord, options: RunOptions) -> ToolResult:
        """
        Run a single tool to completion and describe the outcome.

        The tool's deadline covers both the command builder and the
        subprocess. Builders may touch disk or network (stegseek fetches its
        wordlist), so they run in a worker thread and never stall the loop.
        """
        timeout = options.effective_timeout
        started = time.monotonic()
        try:
            if resolve_binary(tool, self.probe) is None:
                raise ToolMissing(f"{tool.binary} not installed", details={"binary": tool.binary})
            spec = await self._build(tool, file_record, options, timeout)
            remaining = timeout - (time.monotonic() - started)
            return await self._execute(tool, spec, remaining, timeout, started)
        except (ToolMissing, NotApplicable) as exc:
            logger.info(f"[{tool.name}] skipped: {exc.message}")
            return ToolResult.skip(tool.name, tool.category, exc.message, exc.code)
        except (ToolTimeout, ProcessError) as exc:
            logger.warning(f"[{tool.name}] {exc.message}")
            return ToolResult.failure(
                tool.name, tool.category, exc.message, exc.code,
                time.monotonic() - started, exc.details.get("argv", ()),
            )

    async def _build(
        self, tool: ToolDescriptor, file_record: FileRecord, options: RunOptions, timeout: float
    ) -> CommandSpec:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(tool.build, file_record.path, options), timeout=timeout
            )
        except asyncio.TimeoutError:
            # The worker thread cannot be cancelled; it finishes in the background
            raise ToolTimeout(
                f"timeout after {format_seconds(timeout)}", details={"tool": tool.name, "stage": "build"}
            ) from None

    async def _execute(
        self, tool: ToolDescriptor, spec: CommandSpec, remaining: float, timeout: float, started: float
    ) -> ToolResult:
        timed_out = ToolTimeout(
            f"timeout after {format_seconds(timeout)}", details={"tool": tool.name, "argv": spec.argv}
        )
        if remaining <= 0:
            raise timed_out

        env = {**os.environ, **spec.env} if spec.env else None
        logger.debug(f"[{tool.name}] Executing: {spec.display()}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=spec.cwd,
                env=env,
                start_new_session=True,
            )
        except FileNotFoundError:
            # Binary disappeared between the probe and the spawn
            raise ToolMissing(f"{tool.binary} not installed", details={"binary": tool.binary}) from None
        except OSError as exc:
            raise ProcessError(f"failed to start: {exc}", details={"tool": tool.name, "argv": spec.argv}) from exc

        try:
            raw, _ = await asyncio.wait_for(proc.communicate(), timeout=remaining)
        except asyncio.TimeoutError:
            await self._terminate(proc)
            raise timed_out from None

        duration = time.monotonic() - started
        output = (raw or b"").decode("utf-8", errors="replace").strip()
        rc = proc.returncode

        if rc != 0:
            if not output:
                raise ProcessError(
                    describe_exit(rc), details={"tool": tool.name, "argv": spec.argv, "returncode": rc}
                )
            logger.debug(f"[{tool.name}] {describe_exit(rc)} with output; reporting as findings")

        return ToolResult.success(tool.name, tool.category, output, duration, spec.argv)

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """SIGTERM the process group, SIGKILL whatever is left, then reap."""
        self._signal_group(proc, signal.SIGTERM)
        try:
            await asyncio.wait_for(proc.wait(), timeout=self.grace)
        except asyncio.TimeoutError:
            pass
        # Children may outlive the leader; sweep the whole group
        self._signal_group(proc, signal.SIGKILL)
        await proc.wait()

    @staticmethod
    def _signal_group(proc: asyncio.subprocess.Process, sig: int) -> None:
        try:
            if hasattr(os, "killpg"):
                # start_new_session=True makes the child its own group leader
                os.killpg(proc.pid, sig)
            elif proc.returncode is None:
                proc.kill()
        except ProcessLookupError:
            pass
