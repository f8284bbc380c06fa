"""
Unified logging infrastructure module.

Single entry point for logging configuration across the application.
"""

from prompt_manager.services.structured_logging import (
    configure_logging,
    init_logging,
    get_logger,
)

__all__ = ["configure_logging", "init_logging", "get_logger"]
