# ============================================================================
# stegforge/__init__.py
# Package Marker for the StegForge scanner
# ============================================================================
#
# PURPOSE:
# StegForge detects a file's type and runs every applicable steganography
# analysis tool against it concurrently, collecting one result per tool.
#
# LAYOUT:
# - base/: configuration and per-scan run options
# - toolkit/: file classification, tool registry, probes, installer
# - engine/: dispatch filter, concurrent executor, scan entry point
# - reporting/: colorized terminal rendering
# - cli/: the `steg` command
#
# ============================================================================

__version__ = "1.0.0"
