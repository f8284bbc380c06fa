# -*- coding: utf-8 -*-
"""
Caller identity from bearer tokens.

Authentication itself happens at an external identity provider; this module
only verifies the JWT it issued and yields the ``sub`` claim as the caller
identity. Tokens are checked either with a shared HS256 secret or against
the provider's JWKS endpoint (RS256).
"""
from functools import lru_cache, wraps
from typing import Any, Dict, Optional

import jwt
from flask import g, request
from jwt import PyJWKClient

from prompt_manager.errors import Unauthorized
from prompt_manager.services.structured_logging import get_logger

logger = get_logger('prompt_manager.auth')


@lru_cache(maxsize=4)
def get_jwks_client(jwks_url: str) -> PyJWKClient:
    """
    Get JWKS client for token verification.
    Cached to avoid repeated key fetches.
    """
    return PyJWKClient(jwks_url)


class TokenVerifier:
    """Verifies bearer tokens issued by the identity provider."""

    def __init__(
        self,
        secret: Optional[str] = None,
        jwks_url: Optional[str] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ):
        self.secret = secret
        self.jwks_url = jwks_url
        self.audience = audience
        self.issuer = issuer

    @property
    def configured(self) -> bool:
        return bool(self.secret or self.jwks_url)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify a JWT and return its decoded payload.

        Raises:
            Unauthorized: if the token is missing, malformed, expired, signed
                with the wrong key, or lacks a ``sub`` claim.
        """
        if not self.configured:
            raise Unauthorized("Authentication is not configured")
        if not token:
            raise Unauthorized("Missing bearer token")

        try:
            if self.jwks_url:
                key = get_jwks_client(self.jwks_url).get_signing_key_from_jwt(token).key
                algorithms = ["RS256"]
            else:
                key = self.secret
                algorithms = ["HS256"]

            payload = jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_aud": bool(self.audience),
                    "verify_iss": bool(self.issuer),
                },
            )
        except jwt.ExpiredSignatureError as exc:
            raise Unauthorized("Token has expired") from exc
        except jwt.PyJWTError as exc:
            raise Unauthorized(f"Invalid token: {exc}") from exc

        if not payload.get("sub"):
            raise Unauthorized("Invalid token: missing sub")
        return payload


def _bearer_token() -> Optional[str]:
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def current_identity() -> str:
    """
    Return the verified identity of the caller of the current request.

    The result is cached on ``g`` for the rest of the request.
    """
    identity = getattr(g, 'identity', None)
    if identity:
        return identity

    from prompt_manager.extensions import get_services

    try:
        payload = get_services().token_verifier.verify(_bearer_token())
    except Unauthorized as exc:
        logger.warning("Authentication failed", reason=exc.message)
        raise

    g.identity = payload["sub"]
    return g.identity


def require_identity(f):
    """Reject the request with 401 unless a valid bearer token is present."""
    @wraps(f)
    def decorated(*args, **kwargs):
        current_identity()
        return f(*args, **kwargs)
    return decorated
