"""Search-path probes for tool binaries.

Lookups go straight to ``shutil.which`` on every call. Nothing is cached, so a
tool installed between ``steg deps`` and ``steg scan`` is picked up.
"""

import shutil
from typing import Callable, Iterable, Optional

Probe = Callable[[str], bool]


def binary_available(name: str) -> bool:
    return shutil.which(name) is not None


def first_available(names: Iterable[str], probe: Probe = binary_available) -> Optional[str]:
    """Return the first name that resolves on PATH, or None."""
    for name in names:
        if name and probe(name):
            return name
    return None


def resolve_binary(descriptor, probe: Probe = binary_available) -> Optional[str]:
    """Return the descriptor's binary or the first alternate that resolves."""
    return first_available((descriptor.binary, *descriptor.alt_binaries), probe)
