"""Static site preflight: audit checks, local dev server and smoke tests."""

__version__ = "0.1.0"
