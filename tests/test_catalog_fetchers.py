import asyncio
import json

import httpx
import pytest

from sellfast.wizard.catalog import CatalogFetchers
from sellfast.wizard.transport import HttpResult, MarketplaceHttpClient


def _client(handler, **kwargs) -> MarketplaceHttpClient:
    return MarketplaceHttpClient(base_url="http://test", transport=httpx.MockTransport(handler), **kwargs)


class GatedHttp:
    """Each GET waits until the test resolves it, so responses can arrive out of order."""

    def __init__(self):
        self.calls = []

    def set_session_token(self, token):
        pass

    async def get_json(self, path, *, params=None):
        fut = asyncio.get_running_loop().create_future()
        self.calls.append((path, params, fut))
        return await fut


def _ok(detail):
    return HttpResult(ok=True, status_code=200, detail=detail)


@pytest.mark.asyncio
async def test_fetch_categories():
    def handler(request):
        assert request.url.path == "/api/categories"
        return httpx.Response(200, json={"categories": [{"id": "cat_1", "name": "Phones", "icon": "📱"}], "count": 1})

    fetchers = CatalogFetchers(_client(handler))
    assert await fetchers.fetch_categories() is True
    assert [c.name for c in fetchers.categories.items] == ["Phones"]
    assert fetchers.categories.error is None
    assert fetchers.categories.loading is False


@pytest.mark.asyncio
async def test_fetch_categories_empty_and_server_error():
    responses = iter([
        httpx.Response(200, json={"categories": [], "count": 0}),
        httpx.Response(500, json={"error": "Failed to fetch categories: database unavailable"}),
    ])
    fetchers = CatalogFetchers(_client(lambda request: next(responses)))

    await fetchers.fetch_categories()
    assert fetchers.categories.error == "No categories available. Please add categories in the admin panel."

    await fetchers.fetch_categories()
    assert fetchers.categories.items == []
    assert fetchers.categories.error == "Failed to fetch categories: database unavailable"


@pytest.mark.asyncio
async def test_transport_failure_uses_default_message():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetchers = CatalogFetchers(_client(handler))
    await fetchers.fetch_brands("Phones")
    assert fetchers.brands.items == []
    assert fetchers.brands.error == "Failed to fetch companies"


@pytest.mark.asyncio
async def test_fetch_brands_sends_category_or_all():
    seen = []

    def handler(request):
        seen.append(request.url.params.get("category"))
        return httpx.Response(200, json=[{"id": "cmp_1", "name": "Apple"}])

    fetchers = CatalogFetchers(_client(handler))
    await fetchers.fetch_brands("Phones")
    await fetchers.fetch_brands(None)
    assert seen == ["Phones", "all"]
    assert [b.name for b in fetchers.brands.items] == ["Apple"]


@pytest.mark.asyncio
async def test_fetch_brands_empty_message():
    fetchers = CatalogFetchers(_client(lambda request: httpx.Response(200, json=[])))
    await fetchers.fetch_brands("Tablets")
    assert fetchers.brands.error == (
        "No companies available for Tablets. Please add companies and items in the admin panel."
    )


@pytest.mark.asyncio
async def test_fetch_items_params_and_specs_decoded():
    def handler(request):
        assert dict(request.url.params) == {"companyId": "cmp_1", "category": "Phones"}
        return httpx.Response(200, json=[{
            "id": "itm_1",
            "name": "iPhone 15",
            "specifications": [
                {"id": "s1", "name": "Storage", "valueType": "select", "options": json.dumps(["128GB"]), "isRequired": True},
                {"id": "s2", "name": "Notes", "valueType": "rich", "options": "not json"},
            ],
        }])

    fetchers = CatalogFetchers(_client(handler))
    await fetchers.fetch_items("cmp_1", "Phones")
    item = fetchers.items.items[0]
    assert item.specifications[0].options == ["128GB"]
    assert item.specifications[0].is_required is True
    assert item.specifications[1].value_type == "text"
    assert item.specifications[1].options == []


@pytest.mark.asyncio
async def test_fetch_specifications_ordered():
    def handler(request):
        assert request.url.params["itemId"] == "itm_1"
        return httpx.Response(200, json={
            "id": "itm_1",
            "name": "iPhone 15",
            "categoryId": "cat_1",
            "specifications": [
                {"id": "s3", "name": "Notes"},
                {"id": "s2", "name": "Color", "order": 2},
                {"id": "s1", "name": "Storage", "order": 1},
            ],
        })

    fetchers = CatalogFetchers(_client(handler))
    await fetchers.fetch_specifications("itm_1")
    assert [s.id for s in fetchers.specifications.items] == ["s1", "s2", "s3"]


@pytest.mark.asyncio
async def test_fetch_specifications_without_item():
    fetchers = CatalogFetchers(GatedHttp())
    await fetchers.fetch_specifications("")
    assert fetchers.specifications.error == "Item ID is required to fetch specifications"


@pytest.mark.asyncio
async def test_stale_response_is_discarded():
    http = GatedHttp()
    fetchers = CatalogFetchers(http)

    first = asyncio.create_task(fetchers.fetch_brands("Phones"))
    await asyncio.sleep(0)
    second = asyncio.create_task(fetchers.fetch_brands("Laptops"))
    await asyncio.sleep(0)

    http.calls[1][2].set_result(_ok({"data": [{"id": "cmp_2", "name": "Dell"}]}))
    assert await second is True

    http.calls[0][2].set_result(_ok({"data": [{"id": "cmp_1", "name": "Apple"}]}))
    assert await first is False

    assert [b.name for b in fetchers.brands.items] == ["Dell"]


@pytest.mark.asyncio
async def test_clear_invalidates_in_flight_fetch():
    http = GatedHttp()
    fetchers = CatalogFetchers(http)

    pending = asyncio.create_task(fetchers.fetch_specifications("itm_1"))
    await asyncio.sleep(0)
    fetchers.clear_specifications()

    http.calls[0][2].set_result(_ok({"id": "itm_1", "name": "x", "specifications": [{"id": "s1", "name": "Storage"}]}))
    assert await pending is False
    assert fetchers.specifications.items == []


@pytest.mark.asyncio
async def test_session_token_header_per_auth_mode():
    seen = []

    def handler(request):
        seen.append((request.headers.get("cookie"), request.headers.get("authorization")))
        return httpx.Response(200, json={"categories": []})

    cookie = _client(handler, auth_mode="cookie", session_token="sf_abc")
    await cookie.get_json("/api/categories")

    bearer = _client(handler, auth_mode="bearer", session_token="sf_abc")
    await bearer.get_json("/api/categories")
    bearer.set_session_token(None)
    await bearer.get_json("/api/categories")

    assert seen == [("token=sf_abc", None), (None, "Bearer sf_abc"), (None, None)]


@pytest.mark.asyncio
async def test_timeout_result():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = await _client(handler).get_json("/api/categories")
    assert result.ok is False
    assert result.status_code is None
    assert result.error_code == "TIMEOUT"
    assert result.retryable is True


@pytest.mark.asyncio
async def test_transient_status_is_retryable():
    def handler(request):
        return httpx.Response(503, text="upstream down")

    result = await _client(handler).get_json("/api/categories")
    assert result.ok is False
    assert result.error_code == "HTTP_503"
    assert result.retryable is True
    assert result.detail["raw"] == "upstream down"


@pytest.mark.asyncio
async def test_prebuilt_response_has_no_timing():
    result = await _client(lambda request: httpx.Response(200, json={"ok": True})).get_json("/api/health")
    assert result.ok is True
    assert result.detail == {"ok": True}
    assert result.elapsed_ms is None
