"""
Pantry API — Route Cache Decorators
====================================

What:  `cacheable` and `cache_evict` wrap FastAPI endpoint functions.
Why:   Cache behaviour is declared next to the route it applies to, while the
       single shared store stays owned by the application (app.state).
How:   The wrapper exposes a `Request` parameter to FastAPI (adding one to the
       public signature when the endpoint has none), builds a CacheContext from
       it and hands the real endpoint to the shared ResponseCache or
       CacheInvalidator as a zero-argument coroutine.

Usage (decorator order matters, the router decorator goes on top):

    @router.get("/{id}", response_model=FoodResponse)
    @cacheable(Cacheable("food", ttl_seconds=300))
    async def get_food(id: str, user: Optional[CurrentUser] = Depends(get_optional_user), ...):
        ...

Route modules using these decorators must not enable postponed annotation
evaluation; FastAPI reads the wrapper's signature objects directly.
"""

import functools
import inspect
from typing import Any, Callable, List, Optional, Tuple

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from pantry_api.cache.response_cache import (
    CacheContext,
    CacheEvict,
    CacheInvalidator,
    Cacheable,
    ResponseCache,
)

_INJECTED_REQUEST = "_cache_request"


def context_from_request(request: Request) -> CacheContext:
    """Snapshot the parts of a request the cache layer keys on."""
    user = getattr(request.state, "user", None)
    return CacheContext(
        method=request.method.upper(),
        user_id=getattr(user, "id", None),
        subject=getattr(user, "sub", None),
        route_params=[(name, str(value)) for name, value in request.path_params.items()],
        query_params=list(request.query_params.multi_items()),
    )


def _request_parameter(endpoint: Callable) -> Tuple[inspect.Signature, str, bool]:
    """
    Find the endpoint's Request parameter, or add a keyword-only one.

    Returns (public signature, parameter name, injected?).
    """
    signature = inspect.signature(endpoint)
    for name, param in signature.parameters.items():
        if param.annotation is Request:
            return signature, name, False

    params = list(signature.parameters.values())
    params.append(
        inspect.Parameter(_INJECTED_REQUEST, inspect.Parameter.KEYWORD_ONLY, annotation=Request)
    )
    return signature.replace(parameters=params), _INJECTED_REQUEST, True


def _session_parameters(signature: inspect.Signature) -> List[str]:
    return [name for name, param in signature.parameters.items() if param.annotation is AsyncSession]


def _wrap(endpoint: Callable, run: Callable, commit_first: bool = False) -> Callable:
    signature, request_name, injected = _request_parameter(endpoint)
    sessions = _session_parameters(signature) if commit_first else []

    @functools.wraps(endpoint)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        request: Request = kwargs.pop(request_name) if injected else kwargs[request_name]

        async def handler() -> Any:
            result = await endpoint(*args, **kwargs)
            for name in sessions:
                await kwargs[name].commit()
            return jsonable_encoder(result) if result is not None else None

        return await run(request, handler)

    wrapper.__signature__ = signature
    return wrapper


def cacheable(config: Optional[Cacheable]) -> Callable[[Callable], Callable]:
    """Serve GET responses of the decorated endpoint from the shared response cache."""

    def decorator(endpoint: Callable) -> Callable:
        async def run(request: Request, handler: Callable) -> Any:
            response_cache: ResponseCache = request.app.state.response_cache
            return await response_cache.execute(config, context_from_request(request), handler)

        return _wrap(endpoint, run)

    return decorator


def cache_evict(config: Optional[CacheEvict]) -> Callable[[Callable], Callable]:
    """
    Delete the configured keys after the decorated endpoint succeeds.

    The endpoint's AsyncSession is committed before any key is deleted, so a
    concurrent read that misses can only repopulate the cache with committed data.
    """

    def decorator(endpoint: Callable) -> Callable:
        async def run(request: Request, handler: Callable) -> Any:
            invalidator: CacheInvalidator = request.app.state.cache_invalidator
            return await invalidator.execute(config, context_from_request(request), handler)

        return _wrap(endpoint, run, commit_first=True)

    return decorator
