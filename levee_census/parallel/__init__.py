"""Parallel execution helpers."""

from .execution import ExecutionContext, chunk_frame

__all__ = ["ExecutionContext", "chunk_frame"]
