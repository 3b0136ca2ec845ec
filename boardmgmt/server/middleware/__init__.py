"""
Middleware for the BoardMgmt server.

This package provides middleware for request tracing and timing.
"""

from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
