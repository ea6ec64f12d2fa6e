"""
Hall of Shame - Monitoring Module

Structured logging and per-flow log context.
"""

from .logging import bind_context, clear_context, configure_logging, get_logger, unbind_context

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
