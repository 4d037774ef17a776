import pytest


@pytest.mark.asyncio
async def test_categories_sorted_with_count_and_no_store(client, seed_catalog_rows):
    r = await client.get("/api/categories")
    assert r.status_code == 200
    assert "no-store" in r.headers["cache-control"]

    body = r.json()
    assert body["count"] == 3
    assert [c["name"] for c in body["categories"]] == ["Laptops", "Phones", "Tablets"]
    phones = body["categories"][1]
    assert phones["icon"] == "📱"
    assert phones["description"] == "Mobile phones"


@pytest.mark.asyncio
async def test_categories_empty_catalog(client):
    r = await client.get("/api/categories")
    assert r.status_code == 200
    assert r.json() == {"categories": [], "count": 0}


@pytest.mark.asyncio
async def test_companies_for_category_only_those_with_items(client, seed_catalog_rows):
    r = await client.get("/api/companies", params={"category": "Phones"})
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Apple", "Samsung"]

    r = await client.get("/api/companies", params={"category": "Laptops"})
    assert [c["name"] for c in r.json()] == ["Apple"]


@pytest.mark.asyncio
async def test_companies_all_and_missing_category(client, seed_catalog_rows):
    # Nokia has no items, so it never shows up
    r = await client.get("/api/companies", params={"category": "all"})
    assert [c["name"] for c in r.json()] == ["Apple", "Samsung"]

    r = await client.get("/api/companies")
    assert [c["name"] for c in r.json()] == ["Apple", "Samsung"]

    r = await client.get("/api/companies", params={"category": "Cameras"})
    assert r.status_code == 200
    assert r.json() == []

    r = await client.get("/api/companies", params={"category": "Tablets"})
    assert r.json() == []


@pytest.mark.asyncio
async def test_items_by_company_id_and_category(client, seed_catalog_rows):
    apple_id = seed_catalog_rows["apple_id"]

    r = await client.get("/api/items", params={"companyId": apple_id})
    assert r.status_code == 200
    assert sorted(i["name"] for i in r.json()) == ["MacBook Air", "iPhone 15"]

    r = await client.get("/api/items", params={"companyId": apple_id, "category": "Phones"})
    items = r.json()
    assert [i["name"] for i in items] == ["iPhone 15"]

    specs = items[0]["specifications"]
    assert [s["name"] for s in specs] == ["Storage", "Color"]
    assert specs[0]["valueType"] == "select"
    assert specs[0]["isRequired"] is True
    assert specs[0]["options"] == '["128GB", "256GB"]'


@pytest.mark.asyncio
async def test_items_unknown_category_is_ignored_with_company_id(client, seed_catalog_rows):
    r = await client.get("/api/items", params={"companyId": seed_catalog_rows["apple_id"], "category": "Cameras"})
    assert r.status_code == 200
    assert len(r.json()) == 2


@pytest.mark.asyncio
async def test_items_by_company_name(client, seed_catalog_rows):
    r = await client.get("/api/items", params={"company": "Samsung", "category": "Phones"})
    assert [i["name"] for i in r.json()] == ["Galaxy S24"]

    r = await client.get("/api/items", params={"company": "Nokia"})
    assert r.json() == []

    r = await client.get("/api/items", params={"company": "Motorola"})
    assert r.json() == []

    r = await client.get("/api/items", params={"company": "Samsung", "category": "Cameras"})
    assert r.json() == []


@pytest.mark.asyncio
async def test_items_requires_company(client, seed_catalog_rows):
    r = await client.get("/api/items", params={"category": "Phones"})
    assert r.status_code == 400
    assert r.json() == {"error": "Company or companyId parameter is required"}


@pytest.mark.asyncio
async def test_item_detail(client, seed_catalog_rows):
    r = await client.get("/api/items", params={"itemId": seed_catalog_rows["iphone_id"]})
    assert r.status_code == 200
    body = r.json()
    assert body["name"] == "iPhone 15"
    assert body["categoryId"] == seed_catalog_rows["phones_id"]
    assert [s["id"] for s in body["specifications"]] == [
        seed_catalog_rows["storage_id"],
        seed_catalog_rows["color_id"],
    ]

    r = await client.get("/api/items", params={"itemId": seed_catalog_rows["galaxy_id"]})
    assert r.json()["specifications"] == []


@pytest.mark.asyncio
async def test_item_detail_not_found(client, seed_catalog_rows):
    r = await client.get("/api/items", params={"itemId": "itm_missing"})
    assert r.status_code == 404
    assert r.json() == {"error": 'Item with id "itm_missing" not found'}


@pytest.mark.asyncio
async def test_specifications_by_item_name(client, seed_catalog_rows):
    r = await client.get("/api/specifications", params={"item": "iPhone 15"})
    assert r.status_code == 200
    assert sorted(s["name"] for s in r.json()) == ["Color", "Storage"]
    assert set(r.json()[0]) == {"id", "name"}

    r = await client.get("/api/specifications")
    assert r.status_code == 400
    assert r.json() == {"error": "Item parameter is required"}
