"""Foundational pieces the rest of StegForge depends on."""
#
# WHAT'S IN THIS MODULE:
# - config.py: Process-wide configuration (timeouts, paths, logging)
# - options.py: RunOptions, the immutable per-scan knobs
#
