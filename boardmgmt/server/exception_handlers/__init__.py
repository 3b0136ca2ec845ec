"""
Exception handlers for the BoardMgmt server.

This package contains the handlers that turn domain, validation, HTTP and
database exceptions into the JSON error envelope, and a setup function to
register them with the FastAPI application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
