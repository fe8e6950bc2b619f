"""Application-level middleware and exception handlers."""
