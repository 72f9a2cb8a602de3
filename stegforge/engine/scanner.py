"""
stegforge/engine/scanner.py

Single entry point that wires classification, the tool registry, the dispatch
filter and the executor together for one file.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple, Union

from stegforge.base.options import RunOptions
from stegforge.engine.dispatch import filter_tools
from stegforge.engine.executor import ToolExecutor
from stegforge.engine.models import ScanResult
from stegforge.toolkit.filetype import FileRecord, detect
from stegforge.toolkit.registry import ToolDescriptor, ToolRegistry, build_registry

logger = logging.getLogger(__name__)


def plan_scan(
    file_path: Union[str, os.PathLike],
    options: Optional[RunOptions] = None,
    registry: Optional[ToolRegistry] = None,
) -> Tuple[FileRecord, List[ToolDescriptor]]:
    """
    Classify ``file_path`` and select the tools to run against it.

    Raises AccessError / ReadError before anything is dispatched.
    """
    options = options or RunOptions()
    record = detect(file_path)
    registry = registry if registry is not None else build_registry(options)
    tools = filter_tools(registry, record, options)
    logger.info(f"{record.name}: category={record.category.value}, {len(tools)}/{len(registry)} tools applicable")
    return record, tools


async def scan_file(
    file_path: Union[str, os.PathLike],
    options: Optional[RunOptions] = None,
    registry: Optional[ToolRegistry] = None,
    executor: Optional[ToolExecutor] = None,
) -> ScanResult:
    options = options or RunOptions()
    record, tools = plan_scan(file_path, options, registry)
    executor = executor or ToolExecutor()
    return await executor.run(tools, record, options)
