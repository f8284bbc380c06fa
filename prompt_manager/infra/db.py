"""
Unified database infrastructure module.

All models and stores import the SQLAlchemy instance from here.
"""

from prompt_manager.database import db

__all__ = ["db"]
