"""
Typed, caching client for the headless CMS.

Every public call fails soft: transport errors, non-success statuses and
malformed bodies are logged and turned into ``None`` (or ``False`` for
``delete``). Callers treat an empty result as "temporarily unavailable".
"""

import time
from datetime import timedelta
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from fips_shared.errors import CmsDeserializationError, CmsError, CmsStatusError, CmsTransportError
from fips_shared.logging import get_logger
from fips_shared.metrics import MetricsCollector

from ..caching.cache_key import build_key
from ..caching.response_cache import ResponseCache
from ..domain.models import CategoryType, CategoryValue, CollectionEnvelope, ResponseEnvelope

T = TypeVar("T")

CacheDuration = Union[timedelta, float, int]
Params = Mapping[str, Any]

CACHE_KEY_PREFIX = "cms_api:"
DEFAULT_PAGE_SIZE = 100
MAX_PAGES = 1000

PUBLISHED_PRODUCTS_PARAMS = {
    "filters[publishedAt][$notNull]": "true",
    "pagination[pageSize]": 1,
}
PUBLISHED_CATEGORY_TYPES_PARAMS = {
    "filters[publishedAt][$notNull]": "true",
    "filters[enabled]": "true",
    "pagination[pageSize]": 1,
}


@lru_cache(maxsize=256)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _seconds(duration: CacheDuration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class CmsApiClient:
    """Client for reading from and writing to the CMS REST API."""

    def __init__(
        self,
        base_url: str,
        cache: ResponseCache,
        *,
        read_api_key: Optional[str] = None,
        write_api_key: Optional[str] = None,
        timeout: float = 30.0,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.cache = cache
        self.read_api_key = read_api_key
        self.write_api_key = write_api_key
        self.timeout = timeout
        self.metrics = metrics
        self._transport = transport
        self.logger = get_logger("frontend.cms_client")

    async def get(
        self,
        endpoint: str,
        response_type: Type[T],
        params: Optional[Params] = None,
        cache_duration: Optional[CacheDuration] = None,
    ) -> Optional[T]:
        """GET ``endpoint`` and validate the body into ``response_type``.

        With ``cache_duration`` a live cache entry is returned without any
        network call, and a fresh result is cached for that long. Without it
        the call always goes to the CMS and nothing is cached.
        """
        cache_key = self.cache_key(endpoint, params)

        if cache_duration is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self.logger.info("Cache hit", endpoint=endpoint, key=cache_key)
                self._count("cache_hits_total", cache_type="cms")
                return cached
            self._count("cache_misses_total", cache_type="cms")

        try:
            response = await self._request("GET", endpoint, api_key=self.read_api_key, params=params)
            result = self._decode(endpoint, response, response_type)
        except CmsError as exc:
            self._log_failure("GET", exc)
            return None

        if cache_duration is not None and result is not None:
            ttl = _seconds(cache_duration)
            if ttl > 0:
                self.cache.set(cache_key, result, ttl, endpoint=endpoint)
                self.logger.info("Cached response", endpoint=endpoint, key=cache_key, ttl_seconds=ttl)

        return result

    async def post(self, endpoint: str, body: Any, data_type: Type[T]) -> Optional[T]:
        """POST ``body`` and return the envelope's ``data`` as ``data_type``."""
        return await self._write("POST", endpoint, body, data_type)

    async def put(self, endpoint: str, body: Any, data_type: Type[T]) -> Optional[T]:
        """PUT ``body`` and return the envelope's ``data`` as ``data_type``."""
        return await self._write("PUT", endpoint, body, data_type)

    async def delete(self, endpoint: str) -> bool:
        """DELETE ``endpoint``; True only on a 2xx response."""
        try:
            await self._request("DELETE", endpoint, api_key=self.write_api_key)
        except CmsError as exc:
            self._log_failure("DELETE", exc)
            return False
        return True

    async def get_all(
        self,
        endpoint: str,
        item_type: Type[T],
        params: Optional[Params] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        cache_duration: Optional[CacheDuration] = None,
    ) -> List[T]:
        """Walk every page of a collection endpoint.

        A failed page ends the walk; the items gathered so far are returned.
        Without pagination metadata the walk also stops when a page repeats
        the previous one, or after MAX_PAGES pages.
        """
        envelope_type = CollectionEnvelope[item_type]
        items: List[T] = []
        previous_first = None
        page = 1

        while page <= MAX_PAGES:
            page_params = dict(params or {})
            page_params["pagination[page]"] = page
            page_params["pagination[pageSize]"] = page_size

            envelope = await self.get(endpoint, envelope_type, params=page_params, cache_duration=cache_duration)
            if envelope is None or not envelope.data:
                break

            pagination = envelope.pagination
            if pagination is None and page > 1 and envelope.data[0] == previous_first:
                self.logger.warning("CMS ignored page parameter; stopping walk", endpoint=endpoint, page=page)
                break

            items.extend(envelope.data)
            previous_first = envelope.data[0]
            if pagination is not None:
                has_more = page < pagination.page_count
            else:
                has_more = len(envelope.data) == page_size

            if not has_more:
                break
            page += 1

        self.logger.debug("Collected pages", endpoint=endpoint, pages=page, items=len(items))
        return items

    async def get_published_products_count(self, cache_duration: Optional[CacheDuration] = None) -> int:
        """Total published products; 0 when the CMS call fails."""
        return await self._count_of("products", PUBLISHED_PRODUCTS_PARAMS, cache_duration)

    async def get_category_types_count(self, cache_duration: Optional[CacheDuration] = None) -> int:
        """Total published, enabled category types; 0 when the CMS call fails."""
        return await self._count_of("category-types", PUBLISHED_CATEGORY_TYPES_PARAMS, cache_duration)

    async def get_all_category_types(self, cache_duration: Optional[CacheDuration] = None) -> Optional[List[CategoryType]]:
        """Published, enabled category types with their values, in sort order."""
        params = {
            "filters[publishedAt][$notNull]": "true",
            "filters[enabled]": "true",
            "populate[values][fields][0]": "name",
            "populate[values][fields][1]": "slug",
            "populate[values][fields][2]": "enabled",
            "populate[values][fields][3]": "sort_order",
            "sort": "sort_order:asc",
            "pagination[pageSize]": 1000,
        }
        envelope = await self.get("category-types", CollectionEnvelope[CategoryType], params, cache_duration)
        return envelope.data if envelope is not None else None

    async def get_category_values_by_type(
        self,
        category_type_name: str,
        cache_duration: Optional[CacheDuration] = None,
    ) -> List[CategoryValue]:
        params = {
            "filters[category_type][name]": category_type_name,
            "sort": "sort_order:asc",
            "populate[parent][fields][0]": "name",
            "populate[parent][fields][1]": "slug",
            "populate[children][fields][0]": "name",
            "populate[children][fields][1]": "slug",
        }
        return await self.get_all("category-values", CategoryValue, params, cache_duration=cache_duration)

    def cache_key(self, endpoint: str, params: Optional[Params] = None) -> str:
        return CACHE_KEY_PREFIX + build_key(endpoint, params)

    def clear_cache(self) -> int:
        removed = self.cache.clear()
        self.logger.info("CMS API cache cleared", entries_removed=removed)
        return removed

    def clear_cache_for_endpoint(self, endpoint: str, params: Optional[Params] = None) -> int:
        """Drop the entry for one request, or every cached query of a bare path."""
        key = self.cache_key(endpoint, params)
        removed = int(self.cache.remove(key))
        if not params and "?" not in endpoint:
            removed += self.cache.remove_prefix(key + "?")
        self.logger.info("CMS API cache cleared for endpoint", endpoint=endpoint, removed=removed)
        return removed

    def get_cache_info(self) -> List[Dict[str, Any]]:
        return [info for info in self.cache.entries() if info["key"].startswith(CACHE_KEY_PREFIX)]

    async def _count_of(self, endpoint: str, params: Params, cache_duration: Optional[CacheDuration]) -> int:
        envelope = await self.get(endpoint, CollectionEnvelope[dict], params, cache_duration)
        if envelope is None:
            return 0
        return envelope.total or 0

    async def _write(self, method: str, endpoint: str, body: Any, data_type: Type[T]) -> Optional[T]:
        try:
            payload = to_jsonable_python(body, by_alias=True, exclude_none=True)
        except (TypeError, ValueError) as exc:
            self.logger.error("Could not serialize CMS request body", method=method, endpoint=endpoint, error=str(exc))
            return None

        try:
            response = await self._request(method, endpoint, api_key=self.write_api_key, json_body=payload)
            envelope = self._decode(endpoint, response, ResponseEnvelope[data_type])
        except CmsError as exc:
            self._log_failure(method, exc)
            return None
        return envelope.data

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        api_key: Optional[str],
        params: Optional[Params] = None,
        json_body: Any = None,
    ) -> httpx.Response:
        """Send one request; raise a CmsError subclass unless the CMS answered 2xx."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        start_time = time.time()
        outcome = "error"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    params=dict(params) if params else None,
                    json=json_body,
                    headers=headers,
                )
            outcome = str(response.status_code)
        except httpx.HTTPError as exc:
            raise CmsTransportError(endpoint, str(exc) or exc.__class__.__name__, {"method": method}) from exc
        except Exception as exc:
            # Bad configuration (e.g. a non-ASCII API key) fails while building the request.
            self.logger.error("Could not send CMS request", method=method, endpoint=endpoint, exc_info=True)
            raise CmsTransportError(endpoint, f"{exc.__class__.__name__}: {exc}", {"method": method}) from exc
        finally:
            if self.metrics is not None:
                self.metrics.record_cms_request(method, outcome, time.time() - start_time)

        if not response.is_success:
            raise CmsStatusError(endpoint, response.status_code, {"method": method, "body": response.text[:500]})

        self.logger.debug("CMS request succeeded", method=method, url=url, status_code=response.status_code)
        return response

    def _decode(self, endpoint: str, response: httpx.Response, response_type: Type[T]) -> T:
        try:
            return _adapter(response_type).validate_json(response.content)
        except ValidationError as exc:
            raise CmsDeserializationError(
                endpoint,
                f"Response did not match {getattr(response_type, '__name__', response_type)}",
                {"errors": exc.error_count()},
            ) from exc

    def _log_failure(self, method: str, exc: CmsError) -> None:
        self.logger.error(
            "Error calling CMS API endpoint",
            method=method,
            endpoint=exc.endpoint,
            code=exc.code,
            error=exc.message,
            status_code=exc.details.get("status_code"),
        )
        if self.metrics is not None:
            self.metrics.record_error(exc.code)

    def _count(self, metric_name: str, **labels) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter(metric_name, **labels)
