"""Scan engine: dispatch filtering, concurrent execution and result types."""
#
# MODULES IN THIS PACKAGE:
# - **dispatch.py**: Narrows the registry to the tools that apply to one file
# - **executor.py**: Runs the filtered tools concurrently as subprocesses
# - **models.py**: ToolResult / ScanResult value types
# - **scanner.py**: classify → build registry → filter → execute, in one call
#
# WORKFLOW:
# File path → classify → registry → filter → concurrent subprocesses → ScanResult
#
