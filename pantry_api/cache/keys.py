"""
Pantry API — Cache Key Derivation
==================================

What:  Pure functions that turn a request's identity and parameters into cache keys.
Why:   The response cache and the invalidator must agree byte-for-byte on key
       strings, and keys are visible in Redis. Keeping both derivations here
       makes that contract testable without HTTP.

Key format:

    baseKey:userIdentity[:paramName:paramValue]*[:base64(queryString)]

    food:user123                                    no params
    food:user123:id:food-1                          one route param
    food:user123:id:food-1:aW5jbHVkZU9wZW5Gb29kRmFjdHM9dHJ1ZQ==
                                                    + ?includeOpenFoodFacts=true

Query strings are encoded like a browser form (application/x-www-form-urlencoded)
and then standard base64 with padding, so separators inside values can never be
mistaken for the ':' delimiters of the key.
"""

import base64
from typing import Iterable, Optional, Sequence, Tuple
from urllib.parse import urlencode

ANONYMOUS = "anonymous"

Param = Tuple[str, str]


def user_identity(user_id: Optional[str]) -> str:
    """The internal user id, or the literal "anonymous" for unauthenticated requests."""
    return user_id or ANONYMOUS


def encode_query(query_params: Iterable[Param]) -> str:
    """
    Serialize query parameters and base64 them.

    Empty values still serialize (`a=`) next to non-empty ones. Only when every
    value is empty is the result "", and then no query segment is added to the key.
    """
    params = list(query_params)
    if all(value == "" for _, value in params):
        return ""
    query_string = urlencode(params)
    return base64.b64encode(query_string.encode("utf-8")).decode("ascii")


def build_cache_key(
    base_key: str,
    user_id: Optional[str],
    route_params: Sequence[Param] = (),
    query_params: Iterable[Param] = (),
) -> str:
    """
    Build the cache key for one request.

    Args:
        base_key:     Static prefix declared on the route (non-empty).
        user_id:      Internal id of the authenticated user, or None.
        route_params: (name, value) pairs in the order the route path declares them.
        query_params: (name, value) pairs in the order they were received.

    Returns:
        The deterministic key string.
    """
    if not base_key:
        raise ValueError("base_key must be a non-empty string")

    parts = [base_key, user_identity(user_id)]
    for name, value in route_params:
        parts.append(name)
        parts.append(str(value))

    encoded = encode_query(query_params)
    if encoded:
        parts.append(encoded)
    return ":".join(parts)


def resolve_eviction_key(
    template: str,
    user_id: Optional[str] = None,
    route_params: Optional[dict] = None,
    subject: Optional[str] = None,
) -> str:
    """
    Substitute the placeholders of an eviction template.

    Each placeholder is replaced at most once, in this order:
        {userId}     → internal user id, or "anonymous"
        {id}         → route parameter "id", or ""
        {barcode}    → route parameter "barcode", or ""
        {keycloakId} → token subject claim, or ""
    """
    params = route_params or {}
    return (
        template.replace("{userId}", user_identity(user_id), 1)
        .replace("{id}", str(params.get("id") or ""), 1)
        .replace("{barcode}", str(params.get("barcode") or ""), 1)
        .replace("{keycloakId}", subject or "", 1)
    )
