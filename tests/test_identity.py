# -*- coding: utf-8 -*-
"""
Tests for bearer token verification.
"""
import pytest

from prompt_manager.errors import Unauthorized
from prompt_manager.services.identity import TokenVerifier

from conftest import AUTH_SECRET, make_token


class TestTokenVerifier:

    def test_valid_token_yields_sub(self):
        payload = TokenVerifier(secret=AUTH_SECRET).verify(make_token("user_1"))
        assert payload["sub"] == "user_1"

    def test_unconfigured_verifier_rejects_everything(self):
        verifier = TokenVerifier()
        assert verifier.configured is False
        with pytest.raises(Unauthorized):
            verifier.verify(make_token("user_1"))

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token):
        with pytest.raises(Unauthorized):
            TokenVerifier(secret=AUTH_SECRET).verify(token)

    def test_expired_token(self):
        with pytest.raises(Unauthorized) as exc_info:
            TokenVerifier(secret=AUTH_SECRET).verify(make_token("user_1", expires_in=-60))
        assert "expired" in exc_info.value.message

    def test_wrong_secret(self):
        with pytest.raises(Unauthorized):
            TokenVerifier(secret=AUTH_SECRET).verify(make_token("user_1", secret="x" * 40))

    def test_garbage_token(self):
        with pytest.raises(Unauthorized):
            TokenVerifier(secret=AUTH_SECRET).verify("not.a.jwt")

    def test_missing_sub(self):
        with pytest.raises(Unauthorized):
            TokenVerifier(secret=AUTH_SECRET).verify(make_token(""))

    def test_audience_and_issuer_checked_when_configured(self):
        verifier = TokenVerifier(secret=AUTH_SECRET, audience="prompt-manager",
                                 issuer="https://id.example.com/")

        good = make_token("user_1", aud="prompt-manager", iss="https://id.example.com/")
        assert verifier.verify(good)["sub"] == "user_1"

        with pytest.raises(Unauthorized):
            verifier.verify(make_token("user_1", aud="someone-else",
                                       iss="https://id.example.com/"))
        with pytest.raises(Unauthorized):
            verifier.verify(make_token("user_1", aud="prompt-manager", iss="https://evil/"))


class TestBearerHeader:

    @pytest.mark.parametrize("header", [
        "Basic dXNlcjpwYXNz",
        "Bearer",
        "Bearer ",
    ])
    def test_malformed_authorization_header(self, fake_client, header):
        response = fake_client.get("/api/customers/me", headers={"Authorization": header})
        assert response.status_code == 401
