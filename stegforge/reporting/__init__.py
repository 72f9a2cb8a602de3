"""Terminal rendering of scan results and dependency status."""
