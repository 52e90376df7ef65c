"""
Unit tests for the home page view model.
"""

import httpx
import pytest

from fips_shared.test_helpers import FakeCms, TestDataFactory, collection_payload
from service_frontend.app.adapters.cms_client import CmsApiClient
from service_frontend.app.caching.response_cache import ResponseCache
from service_frontend.app.domain.home import build_home_view_model


def make_client(fake_cms: FakeCms) -> CmsApiClient:
    return CmsApiClient("http://cms.test/api", ResponseCache(), transport=fake_cms.transport)


class TestHomeViewModel:
    """Home page counts under healthy, failing and partially failing CMS."""

    @pytest.mark.asyncio
    async def test_counts_from_pagination_totals(self):
        fake_cms = FakeCms({
            "/api/products": httpx.Response(200, json=collection_payload(TestDataFactory.create_products(1), total=25)),
            "/api/category-types": httpx.Response(200, json=collection_payload(TestDataFactory.create_category_types()[:1], total=8)),
        })

        view_model = await build_home_view_model(make_client(fake_cms))

        assert view_model.published_products_count == 25
        assert view_model.category_types_count == 8

    @pytest.mark.asyncio
    async def test_transport_errors_degrade_to_zero(self):
        fake_cms = FakeCms({
            "/api/products": httpx.ConnectError("Connection refused"),
            "/api/category-types": httpx.ConnectError("Connection refused"),
        })

        view_model = await build_home_view_model(make_client(fake_cms))

        assert view_model.published_products_count == 0
        assert view_model.category_types_count == 0

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        fake_cms = FakeCms({
            "/api/products": httpx.Response(200, json=collection_payload(TestDataFactory.create_products(1), total=15)),
            "/api/category-types": httpx.Response(500, text="Internal Server Error"),
        })

        view_model = await build_home_view_model(make_client(fake_cms))

        assert view_model.published_products_count == 15
        assert view_model.category_types_count == 0

    @pytest.mark.asyncio
    async def test_missing_pagination_counts_zero(self):
        fake_cms = FakeCms({
            "/api/products": httpx.Response(200, json={"data": []}),
            "/api/category-types": httpx.Response(200, json={"data": [], "meta": {}}),
        })

        view_model = await build_home_view_model(make_client(fake_cms))

        assert view_model.published_products_count == 0
        assert view_model.category_types_count == 0

    @pytest.mark.asyncio
    async def test_only_published_items_requested(self):
        fake_cms = FakeCms({
            "/api/products": httpx.Response(200, json=collection_payload([], total=0)),
            "/api/category-types": httpx.Response(200, json=collection_payload([], total=0)),
        })

        await build_home_view_model(make_client(fake_cms))

        products_request = fake_cms.calls_to("/api/products")[0]
        category_types_request = fake_cms.calls_to("/api/category-types")[0]
        assert products_request.url.params["filters[publishedAt][$notNull]"] == "true"
        assert category_types_request.url.params["filters[enabled]"] == "true"
