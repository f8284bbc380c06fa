"""
Infrastructure package - unified entry points for core services.

This package provides standardized, centralized access to:
- Database (db)
- Authentication (require_identity, current_identity)
- Logging (configure_logging, init_logging, get_logger)
"""

from prompt_manager.infra.db import db
from prompt_manager.infra.auth import require_identity, current_identity
from prompt_manager.infra.log import configure_logging, init_logging, get_logger

__all__ = [
    "db",
    "require_identity",
    "current_identity",
    "configure_logging",
    "init_logging",
    "get_logger",
]
