# ============================================================================
# stegforge/toolkit/__init__.py
# Toolkit Package - Analysis Tool Integration Layer
# ============================================================================
#
# PURPOSE:
# Everything StegForge knows about the target file and the external tools it
# can run against it. The engine package decides what runs; this package
# describes what exists.
#
# KEY MODULES:
# - **filetype.py**: Magic-byte / extension file classification
# - **registry.py**: Tool descriptors and their command builders
# - **probe.py**: Live PATH lookups for tool binaries
# - **wordlists.py**: rockyou.txt discovery, extraction and download
# - **installer.py**: Dependency catalog and package-manager installs
# - **diagnostics.py**: Missing-tool reports with install hints
# - **internal_tools/**: Python helpers run as subprocesses like any tool
#
# ============================================================================
