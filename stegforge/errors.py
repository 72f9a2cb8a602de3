"""Structured error taxonomy for StegForge."""
#
# PURPOSE:
# Every failure the scanner can report has an error code, a human-readable
# message and an optional details dict. Classification errors abort a scan;
# tool errors are recorded per tool and never abort the batch.
#
# ERROR CODE FORMAT:
# - CLASSIFY_XXX: File classification errors (fatal to the scan)
# - TOOL_XXX: Per-tool errors (skip or failure, never fatal)
# - INSTALL_XXX: Dependency installation errors
# - CONFIG_XXX: Configuration errors
#
# USAGE:
#   from stegforge.errors import ToolTimeout
#
#   raise ToolTimeout("timeout after 60s", details={"tool": "zsteg"})
#
import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Classification Errors
    CLASSIFY_ACCESS = "CLASSIFY_001"
    CLASSIFY_READ = "CLASSIFY_002"

    # Tool Errors
    TOOL_NOT_INSTALLED = "TOOL_001"
    TOOL_EXEC_FAILED = "TOOL_002"
    TOOL_TIMEOUT = "TOOL_003"
    TOOL_NOT_APPLICABLE = "TOOL_007"

    # Install Errors
    INSTALL_FAILED = "INSTALL_001"
    INSTALL_UNSUPPORTED = "INSTALL_002"

    # Config Errors
    CONFIG_INVALID = "CONFIG_001"


class StegForgeError(Exception):
    """
    Base exception class for StegForge with structured error information.

    Attributes:
        code: ErrorCode enum value (e.g., "TOOL_003")
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    default_code: ErrorCode = ErrorCode.TOOL_EXEC_FAILED

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None,
    ):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class AccessError(StegForgeError):
    """The target path is missing, is a directory, or cannot be opened."""

    default_code = ErrorCode.CLASSIFY_ACCESS


class ReadError(StegForgeError):
    """Reading the header bytes of the target failed."""

    default_code = ErrorCode.CLASSIFY_READ


class ToolMissing(StegForgeError):
    """The tool's binary is not on the search path."""

    default_code = ErrorCode.TOOL_NOT_INSTALLED


class NotApplicable(StegForgeError):
    """Raised by a command builder that cannot produce a command for this run."""

    default_code = ErrorCode.TOOL_NOT_APPLICABLE

    def __init__(self, reason: str = "command not applicable", details: Optional[Dict[str, Any]] = None):
        super().__init__(reason, details)

    @property
    def reason(self) -> str:
        return self.message


class ToolTimeout(StegForgeError):
    default_code = ErrorCode.TOOL_TIMEOUT


class ProcessError(StegForgeError):
    """Non-zero exit with no output to show for it."""

    default_code = ErrorCode.TOOL_EXEC_FAILED


class InstallError(StegForgeError):
    default_code = ErrorCode.INSTALL_FAILED


class ConfigError(StegForgeError):
    default_code = ErrorCode.CONFIG_INVALID


__all__ = [
    "ErrorCode",
    "StegForgeError",
    "AccessError",
    "ReadError",
    "ToolMissing",
    "NotApplicable",
    "ToolTimeout",
    "ProcessError",
    "InstallError",
    "ConfigError",
]
