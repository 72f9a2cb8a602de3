import logging
from typing import List, Optional

from pydantic import BaseModel

from stegforge.toolkit.installer import (
    DEPENDENCIES,
    Distro,
    detect_distro,
    get_dependency,
    install_hint,
    is_available,
)
from stegforge.toolkit.probe import Probe, binary_available

logger = logging.getLogger(__name__)


class DependencyStatus(BaseModel):
    name: str
    binary: str
    available: bool
    description: str = ""


class DiagnosticIssue(BaseModel):
    tool_name: str
    issue_type: str = "missing_binary"
    message: str
    install_hint: Optional[str] = None


def dependency_status(probe: Probe = binary_available) -> List[DependencyStatus]:
    """Live availability of every catalog entry, in catalog order."""
    return [
        DependencyStatus(
            name=dep.name,
            binary=dep.binary,
            available=is_available(dep, probe),
            description=dep.description,
        )
        for dep in DEPENDENCIES
    ]


def check_missing_tools(
    required_tools: Optional[List[str]] = None,
    probe: Probe = binary_available,
    distro: Optional[Distro] = None,
) -> List[DiagnosticIssue]:
    """
    Check for missing binaries and return actionable diagnostics.
    If required_tools is None, checks the whole dependency catalog.
    """
    distro = distro if distro is not None else detect_distro(probe)
    names = required_tools if required_tools else [dep.name for dep in DEPENDENCIES]

    issues = []
    for name in names:
        dep = get_dependency(name)
        if dep is None:
            logger.debug(f"No catalog entry for {name}")
            continue
        if is_available(dep, probe):
            continue
        issues.append(DiagnosticIssue(
            tool_name=dep.name,
            message=f"Binary '{dep.binary}' not found in PATH",
            install_hint=install_hint(dep, distro),
        ))
    return issues
