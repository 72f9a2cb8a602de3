"""Dispatch filter: which registered tools run against a given file."""
from typing import Iterable, List

from stegforge.base.options import RunOptions
from stegforge.toolkit.filetype import FileRecord
from stegforge.toolkit.registry import ToolDescriptor


def filter_tools(
    descriptors: Iterable[ToolDescriptor],
    file_record: FileRecord,
    options: RunOptions,
) -> List[ToolDescriptor]:
    """
    Narrow the registry to the tools applicable to ``file_record``.

    Rules, in order:
      1. drop tools named in ``options.skip`` (case-insensitive)
      2. if ``options.only`` is non-empty, drop tools not named in it
      3. drop tools whose category set is non-empty and lacks the file's category

    Skip wins over only. Registry order is preserved.
    """
    skip_set = {s.lower() for s in options.skip}
    only_set = {o.lower() for o in options.only}

    filtered = []
    for tool in descriptors:
        name = tool.name.lower()
        if name in skip_set:
            continue
        if only_set and name not in only_set:
            continue
        if not tool.applies(file_record.category):
            continue
        filtered.append(tool)
    return filtered
