# -*- coding: utf-8 -*-
"""
Error taxonomy for the Prompt Manager API.

Every domain error carries a stable ``error_code`` and the HTTP status the
API layer renders it with (see ``prompt_manager.middleware.error_handlers``).
"""


class PromptManagerError(Exception):
    """Base class for all domain errors."""

    error_code = 'internal_error'
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self):
        return {'error': self.error_code, 'message': self.message}


class Unauthorized(PromptManagerError):
    """Authentication required."""

    error_code = 'auth_required'
    status_code = 401


class NotFoundError(PromptManagerError):
    """Not found."""

    error_code = 'not_found'
    status_code = 404


class ConflictError(PromptManagerError):
    """Entry already exists."""

    error_code = 'conflict'
    status_code = 409


class SignatureError(PromptManagerError):
    """Invalid webhook signature."""

    error_code = 'invalid_signature'
    status_code = 400


class GatewayError(PromptManagerError):
    """Payment gateway request failed."""

    error_code = 'gateway_error'
    status_code = 502


class EventPayloadError(PromptManagerError):
    """Webhook event payload is missing required fields."""

    error_code = 'invalid_event_payload'
    status_code = 500


class ConfigurationError(PromptManagerError):
    """Required configuration is missing."""

    error_code = 'configuration_error'
    status_code = 500
