"""
Pantry API — OpenFoodFacts Client
==================================

What:  Async client for the public OpenFoodFacts product database.
Why:   Foods are enriched with nutrition facts, brands and images by barcode,
       and users can search and import products instead of typing them in.
How:   httpx.AsyncClient calls wrapped in tenacity retries and a circuit breaker,
       with a short-lived in-process result cache (cachetools.TTLCache).
Who:   FoodService (enrichment, search, import) and the health route.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transport errors
       and 5xx answers (4xx answers are final and never retried)
    2. Circuit breaker to fail fast while OpenFoodFacts is down
    3. HTTP 429 from upstream → ExternalServiceError with retry_after=60
    4. Results cached for OPENFOODFACTS_CACHE_TTL seconds (default 5 minutes)

Endpoints used:
    GET /api/v0/product/{barcode}.json   single product (status == 1 when found)
    GET /cgi/search.pl?action=process&json=1&...   full-text / tag search
"""

import json
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx
from cachetools import TTLCache
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from pantry_api.config import settings
from pantry_api.exceptions import CircuitBreakerOpenError, ExternalServiceError

logger = logging.getLogger(__name__)

HEALTH_CHECK_BARCODE = "737628064502"
RATE_LIMIT_RETRY_AFTER = 60

# Nutriment keys in OpenFoodFacts → our field names
NUTRIMENT_FIELDS = {
    "energy-kcal": "energy_kcal",
    "energy-kj": "energy_kj",
    "fat": "fat",
    "saturated-fat": "saturated_fat",
    "trans-fat": "trans_fat",
    "cholesterol": "cholesterol",
    "carbohydrates": "carbohydrates",
    "sugars": "sugars",
    "fiber": "fiber",
    "proteins": "proteins",
    "salt": "salt",
    "sodium": "sodium",
    "vitamin-a": "vitamin_a",
    "vitamin-c": "vitamin_c",
    "calcium": "calcium",
    "iron": "iron",
}


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Implements the circuit breaker pattern to prevent cascade failures.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe: uvicorn async workers share a single event loop per process,
    and each process keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Check if a request is allowed through the circuit breaker.

        Raises:
            CircuitBreakerOpenError if circuit is OPEN and recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


class UpstreamServerError(Exception):
    """A 5xx answer from OpenFoodFacts; retried like a transport error."""

    def __init__(self, status_code: int):
        super().__init__(f"OpenFoodFacts answered HTTP {status_code}")
        self.status_code = status_code


# ══════════════════════════════════════════════════════════════════════════
# Product transformation
# ══════════════════════════════════════════════════════════════════════════

def product_name(product: Dict[str, Any]) -> str:
    return (
        product.get("product_name_en")
        or product.get("product_name")
        or product.get("generic_name")
        or "Unknown Product"
    )


def transform_nutriments(nutriments: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Per-100g values where present, otherwise the plain value."""
    if not nutriments:
        return None
    return {
        field: nutriments.get(f"{source}_100g") or nutriments.get(source)
        for source, field in NUTRIMENT_FIELDS.items()
    }


def transform_product(barcode: str, product: Dict[str, Any]) -> Dict[str, Any]:
    """Map a raw OpenFoodFacts product document to our product info shape."""
    brands = product.get("brands") or ""
    return {
        "barcode": barcode,
        "name": product_name(product),
        "generic_name": product.get("generic_name"),
        "brands": [brand.strip() for brand in brands.split(",") if brand.strip()],
        "categories": product.get("categories_tags") or [],
        "labels": product.get("labels_tags") or [],
        "quantity": product.get("quantity"),
        "serving_size": product.get("serving_size"),
        "ingredients": product.get("ingredients_text_en") or product.get("ingredients_text"),
        "allergens": product.get("allergens_tags") or [],
        "traces": product.get("traces_tags") or [],
        "nutrition_grade": product.get("nutrition_grades"),
        "nova_group": product.get("nova_group"),
        "ecoscore_grade": product.get("ecoscore_grade"),
        "image_url": product.get("image_url"),
        "image_front_url": product.get("image_front_url"),
        "nutritional_info": transform_nutriments(product.get("nutriments")),
        "countries": product.get("countries_tags") or [],
        "completeness": product.get("completeness"),
    }


def build_search_params(
    query: Optional[str] = None,
    categories: Optional[List[str]] = None,
    brands: Optional[List[str]] = None,
    page: int = 1,
    page_size: int = 20,
    sort_by: Optional[str] = None,
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "action": "process",
        "json": 1,
        "page": page,
        "page_size": page_size,
    }
    if query:
        params["search_terms"] = query
    if categories:
        params["tagtype_0"] = "categories"
        params["tag_contains_0"] = "contains"
        params["tag_0"] = ",".join(categories)
    if brands:
        params["tagtype_1"] = "brands"
        params["tag_contains_1"] = "contains"
        params["tag_1"] = ",".join(brands)
    if sort_by:
        params["sort_by"] = sort_by
    return params


# ══════════════════════════════════════════════════════════════════════════
# OpenFoodFacts Service
# ══════════════════════════════════════════════════════════════════════════

class OpenFoodFactsService:
    """
    Error Handling Chain:
        Request fails (transport / 5xx) → tenacity retries with backoff
        → All retries fail → circuit breaker failure, ExternalServiceError (503)
        → Threshold reached → future calls rejected instantly (CircuitBreakerOpenError)
        → Recovery timeout → one test call (HALF_OPEN) → success closes the circuit
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        max_attempts: Optional[int] = None,
        wait: Any = None,
        cache_ttl: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.openfoodfacts_base_url).rstrip("/")
        self._client = client
        self.max_attempts = max_attempts or settings.retry_max_attempts
        self.wait = wait or wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        )
        ttl = settings.openfoodfacts_cache_ttl if cache_ttl is None else cache_ttl
        self._cache: TTLCache = TTLCache(maxsize=512, ttl=max(ttl, 1))
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.openfoodfacts_timeout,
                headers={"User-Agent": settings.openfoodfacts_user_agent},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── Public API ────────────────────────────────────────────────────────

    async def get_product_by_barcode(self, barcode: str) -> Optional[Dict[str, Any]]:
        """
        Fetch one product. Returns None when OpenFoodFacts does not know the barcode.

        Raises:
            CircuitBreakerOpenError: circuit is open
            ExternalServiceError: upstream failed after retries (or rate limited us)
        """
        cache_key = f"barcode:{barcode}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("OpenFoodFacts cache hit for barcode: %s", barcode)
            return cached

        data = await self._get_json(f"/api/v0/product/{barcode}.json")
        if not data or data.get("status") != 1 or not data.get("product"):
            logger.info("Product not found in OpenFoodFacts for barcode: %s", barcode)
            return None

        info = transform_product(barcode, data["product"])
        self._cache[cache_key] = info
        logger.info("Fetched OpenFoodFacts product: %s", info["name"])
        return info

    async def search_products(
        self,
        query: Optional[str] = None,
        categories: Optional[List[str]] = None,
        brands: Optional[List[str]] = None,
        page: int = 1,
        page_size: int = 20,
        sort_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        params = build_search_params(query, categories, brands, page, page_size, sort_by)
        cache_key = "search:" + json.dumps(params, sort_keys=True)
        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug("OpenFoodFacts cache hit for search")
            return cached

        data = await self._get_json("/cgi/search.pl", params=params)
        raw_products = data.get("products") or []
        products = [
            transform_product(raw.get("code") or f"search-{index}", raw)
            for index, raw in enumerate(raw_products)
            if raw.get("product_name")
        ]
        result = {
            "products": products,
            "total_count": int(data.get("count") or 0),
            "page": int(data.get("page") or page),
            "page_size": int(data.get("page_size") or page_size),
            "total_pages": int(data.get("page_count") or 0),
        }
        self._cache[cache_key] = result
        logger.info("OpenFoodFacts search returned %d products", len(products))
        return result

    async def get_nutritional_info(self, barcode: str) -> Optional[Dict[str, Any]]:
        product = await self.get_product_by_barcode(barcode)
        return product.get("nutritional_info") if product else None

    async def health_check(self) -> bool:
        """Lightweight reachability probe; never raises."""
        try:
            response = await self.client.get(
                f"/api/v0/product/{HEALTH_CHECK_BARCODE}.json", timeout=5.0
            )
            return response.status_code < 500
        except Exception as e:
            logger.warning("OpenFoodFacts health check failed: %s", e)
            return False

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("OpenFoodFacts result cache cleared")

    def cache_stats(self) -> Dict[str, Any]:
        return {"size": len(self._cache), "max_size": self._cache.maxsize, "ttl": self._cache.ttl}

    # ── HTTP with retry + circuit breaker ─────────────────────────────────

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        try:
            data = await self._get_json_with_retry(path, params, request_id)
        except ExternalServiceError:
            self.circuit_breaker.record_failure()
            raise
        except (httpx.HTTPError, UpstreamServerError) as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] OpenFoodFacts request failed after retries: %s", request_id, e)
            raise ExternalServiceError(
                message="OpenFoodFacts is temporarily unavailable. Please try again later.",
                context={"request_id": request_id, "attempts": self.max_attempts},
            )
        except ValueError as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] OpenFoodFacts returned invalid JSON: %s", request_id, e)
            raise ExternalServiceError(
                message="OpenFoodFacts returned an invalid response.",
                context={"request_id": request_id},
            )

        self.circuit_breaker.record_success()
        return data

    async def _get_json_with_retry(
        self,
        path: str,
        params: Optional[Dict[str, Any]],
        request_id: str,
    ) -> Dict[str, Any]:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, UpstreamServerError)),
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                start_time = time.time()
                response = await self.client.get(path, params=params)
                duration_ms = (time.time() - start_time) * 1000
                logger.debug(
                    "[%s] OpenFoodFacts GET %s → %d in %.0fms",
                    request_id,
                    path,
                    response.status_code,
                    duration_ms,
                )

                if response.status_code == 429:
                    raise ExternalServiceError(
                        message="OpenFoodFacts rate limit exceeded. Please try again later.",
                        retry_after=RATE_LIMIT_RETRY_AFTER,
                        context={"request_id": request_id},
                    )
                if response.status_code >= 500:
                    raise UpstreamServerError(response.status_code)
                if response.status_code == 404:
                    return {}
                response.raise_for_status()
                return response.json()
        return {}


# ── Singleton Instance ────────────────────────────────────────────────────
openfoodfacts_service = OpenFoodFactsService()
