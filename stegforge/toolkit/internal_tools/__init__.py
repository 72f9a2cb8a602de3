"""
Python-based analysis helpers.

Unlike library code, these run as ``python -m`` subprocesses so the executor
treats them exactly like external tools: same timeout, same output capture,
same result semantics.
"""
