"""
Pantry API — Bearer Token Authentication
=========================================

What:  Validates Keycloak-issued JWTs and resolves the internal user for a request.
Why:   Every owned resource is scoped to an internal user id; the cache layer
       also keys per-user responses on that id.
How:   JWKSAuthenticator fetches the realm's signing keys (cached, refreshed on an
       unknown `kid`) and verifies tokens with python-jose. FastAPI dependencies
       turn the verified claims into a CurrentUser and store it on
       `request.state.user`, where the cache decorators read it.

Dependencies:
    get_current_user   → 401 without a valid token
    get_optional_user  → None without a token, 401 with an invalid one
    require_roles(...) → 403 unless the token carries one of the roles
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Set

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.config import settings
from pantry_api.database import get_db_session
from pantry_api.exceptions import ForbiddenError, UnauthorizedError
from pantry_api.services.user_service import user_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller: internal id plus what the token asserted."""

    id: str
    sub: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    email: Optional[str] = None

    def has_any_role(self, *roles: str) -> bool:
        return any(role in self.roles for role in roles)


def extract_roles(claims: Dict[str, Any], client_id: Optional[str] = None) -> Set[str]:
    """Collect roles from the usual Keycloak token locations."""
    roles: Set[str] = set()

    direct_roles = claims.get("roles")
    if isinstance(direct_roles, list):
        roles.update(role for role in direct_roles if isinstance(role, str))

    realm_access = claims.get("realm_access") or {}
    if isinstance(realm_access, dict):
        realm_roles = realm_access.get("roles")
        if isinstance(realm_roles, list):
            roles.update(role for role in realm_roles if isinstance(role, str))

    resource_access = claims.get("resource_access") or {}
    if isinstance(resource_access, dict):
        for resource_name, resource in resource_access.items():
            if client_id and resource_name != client_id:
                continue
            if isinstance(resource, dict) and isinstance(resource.get("roles"), list):
                roles.update(role for role in resource["roles"] if isinstance(role, str))

    return roles


class JWKSAuthenticator:
    """Validates JWTs against the realm's JWKS endpoint."""

    def __init__(
        self,
        jwks_url: str,
        issuer: Optional[str] = None,
        audience: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        refresh_interval: int = 3600,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.jwks_url = jwks_url
        self.issuer = issuer
        self.audience = audience
        self.algorithms = algorithms or ["RS256"]
        self.refresh_interval = refresh_interval

        self._keys: Optional[List[Dict[str, Any]]] = None
        self._last_refresh = 0.0
        self._lock = asyncio.Lock()
        self._client = client or httpx.AsyncClient(timeout=5.0)

    async def close(self) -> None:
        await self._client.aclose()

    async def validate(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, expiry and issuer; return the claims.

        Raises:
            UnauthorizedError: token malformed, unsigned by a known key, or expired
        """
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise UnauthorizedError(message="Invalid bearer token", context={"error": str(e)})

        kid = header.get("kid")
        key = await self._get_key(kid) if kid else None
        if key is None:
            raise UnauthorizedError(message="Signing key not found for token")

        try:
            return jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except JWTError as e:
            raise UnauthorizedError(message="Invalid or expired bearer token", context={"error": str(e)})

    async def _get_key(self, kid: str) -> Optional[Dict[str, Any]]:
        await self._refresh_keys(force=False)
        for key in self._keys or []:
            if key.get("kid") == kid:
                return key

        # Keys may have been rotated since the last refresh
        await self._refresh_keys(force=True)
        for key in self._keys or []:
            if key.get("kid") == kid:
                return key
        return None

    def _is_fresh(self) -> bool:
        return self._keys is not None and (time.time() - self._last_refresh) < self.refresh_interval

    async def _refresh_keys(self, force: bool) -> None:
        if not force and self._is_fresh():
            return

        async with self._lock:
            if not force and self._is_fresh():
                return
            try:
                response = await self._client.get(self.jwks_url)
                response.raise_for_status()
                keys = response.json().get("keys")
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Could not fetch JWKS from %s: %s", self.jwks_url, e)
                raise UnauthorizedError(message="Token validation is temporarily unavailable")
            if not isinstance(keys, list):
                raise UnauthorizedError(message="Token validation is temporarily unavailable")

            self._keys = keys
            self._last_refresh = time.time()
            logger.debug("Loaded %d signing keys from JWKS", len(keys))


_authenticator: Optional[JWKSAuthenticator] = None


def get_authenticator() -> JWKSAuthenticator:
    """Process-wide authenticator built lazily from settings."""
    global _authenticator
    if _authenticator is None:
        _authenticator = JWKSAuthenticator(
            jwks_url=settings.keycloak_jwks_url,
            issuer=settings.keycloak_issuer if settings.keycloak_url else None,
            audience=settings.keycloak_client_id if settings.jwt_verify_audience else None,
            algorithms=settings.jwt_algorithms_list,
            refresh_interval=settings.jwks_cache_seconds,
        )
    return _authenticator


async def close_authenticator() -> None:
    global _authenticator
    if _authenticator is not None:
        await _authenticator.close()
        _authenticator = None


async def _resolve_user(request: Request, db: AsyncSession, token: str) -> CurrentUser:
    claims = await get_authenticator().validate(token)
    user = await user_service.get_or_create_from_claims(db, claims)
    current = CurrentUser(
        id=user.id,
        sub=claims["sub"],
        roles=frozenset(extract_roles(claims, settings.keycloak_client_id)),
        email=claims.get("email"),
    )
    request.state.user = current
    return current


# ── FastAPI dependencies ──────────────────────────────────────────────────

async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[CurrentUser]:
    if credentials is None or not credentials.credentials:
        request.state.user = None
        return None
    return await _resolve_user(request, db, credentials.credentials)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return await _resolve_user(request, db, credentials.credentials)


def require_roles(*roles: str) -> Callable:
    """Dependency factory: the caller must hold at least one of `roles`."""

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_any_role(*roles):
            raise ForbiddenError(
                message="Insufficient role for this action",
                context={"required_roles": list(roles)},
            )
        return user

    return dependency
