"""
Unified authentication infrastructure module.

Routes import the identity helpers from here.
"""

from prompt_manager.services.identity import require_identity, current_identity

__all__ = ["require_identity", "current_identity"]
