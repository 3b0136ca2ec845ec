"""
Core utilities and configuration for BoardMgmt.

This package provides core functionality including logging configuration,
domain exceptions, database setup and the shared domain/IO models.
"""

from boardmgmt.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
