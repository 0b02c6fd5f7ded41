"""Request authenticators.

Each authenticator inspects one kind of credential and returns a uniform
AuthResult. The chain tries them in order and returns the first success.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Mapping

import jwt

from autocrm.core.config import settings
from autocrm.core.security import decode_access_token, verify_secret

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authentication attempt."""

    authenticated: bool
    principal: str | None = None
    method: str | None = None
    reason: str | None = None
    claims: dict | None = None

    @classmethod
    def denied(cls, reason: str, method: str | None = None) -> "AuthResult":
        return cls(authenticated=False, method=method, reason=reason)


class Authenticator(ABC):
    """Base class for credential checks."""

    method: str = ""

    @abstractmethod
    def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        """Inspect request headers and return an AuthResult."""


class TokenAuthenticator(Authenticator):
    """Bearer JWT with a mandatory, unexpired `exp` claim."""

    method = "token"

    def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        if not settings.jwt_secret_configured:
            return AuthResult.denied("token secret not configured", self.method)
        authorization = headers.get("authorization") or ""
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return AuthResult.denied("missing bearer token", self.method)
        try:
            claims = decode_access_token(token.strip())
        except jwt.ExpiredSignatureError:
            return AuthResult.denied("token expired", self.method)
        except jwt.InvalidTokenError:
            return AuthResult.denied("invalid token", self.method)
        principal = claims.get("email") or claims.get("sub")
        if not principal:
            return AuthResult.denied("token has no subject", self.method)
        return AuthResult(
            authenticated=True,
            principal=str(principal),
            method=self.method,
            claims=claims,
        )


class ApiKeyAuthenticator(Authenticator):
    """Static API key compared against deployment configuration."""

    method = "api_key"

    def __init__(self, expected_key: str | None):
        self.expected_key = expected_key

    def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        if not self.expected_key:
            return AuthResult.denied("api key not configured", self.method)
        provided = headers.get(API_KEY_HEADER)
        if not provided:
            return AuthResult.denied("missing api key", self.method)
        if not verify_secret(provided, self.expected_key):
            return AuthResult.denied("invalid api key", self.method)
        return AuthResult(authenticated=True, principal="service", method=self.method)


class AuthenticatorChain(Authenticator):
    """Try authenticators in order; first success wins."""

    method = "chain"

    def __init__(self, authenticators: list[Authenticator]):
        self.authenticators = authenticators

    def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        reasons: list[str] = []
        for authenticator in self.authenticators:
            result = authenticator.authenticate(headers)
            if result.authenticated:
                return result
            if result.reason:
                reasons.append(f"{authenticator.method}: {result.reason}")
        logger.info("Authentication denied (%s)", "; ".join(reasons))
        return AuthResult.denied("; ".join(reasons) or "no authenticators", self.method)
