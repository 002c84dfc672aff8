import json
import uuid
from decimal import Decimal

from sqlalchemy import func, select

from storefront.db.models.order_items import OrderItem
from storefront.db.models.orders import Order
from storefront.db.models.products import Product
from storefront.db.models.reviews import Review
from storefront.db.repositories import products as product_repo

from conftest import ADMIN_HEADERS, USER_HEADERS, product_payload


async def _product_count(session_factory):
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(Product))).scalar_one()


async def _add_order_for(session, product):
    address = {"street": "1 Main St", "city": "Springfield", "state": "IL", "zip": "62701", "country": "US"}
    order = Order(
        customer_name="Ada Buyer",
        customer_email="ada@example.com",
        shipping_address=address,
        billing_address=address,
        total_amount=Decimal("1299.99"),
    )
    session.add(order)
    await session.flush()
    session.add(OrderItem(
        order_id=order.id,
        product_id=product.id,
        quantity=1,
        unit_price=Decimal("1299.99"),
        total_price=Decimal("1299.99"),
    ))
    await session.commit()


async def test_create_product(client, catalog):
    payload = product_payload(catalog["category"].id, catalog["brand"].id)

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["slug"] == "lumen-qled-65"
    assert data["price"] == 999.0
    assert data["category"]["slug"] == "tvs"
    assert data["brand"]["name"] == "Lumen"
    assert data["specifications"] == {"size": "65in", "hdr": True}


async def test_create_product_sanitizes_text(client, catalog):
    payload = product_payload(
        catalog["category"].id,
        catalog["brand"].id,
        name='<script>steal()</script>QLED <b onclick="x()">65</b>',
        description="javascript:alert(1) A very bright television",
    )

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 201
    data = response.json()["data"]
    assert "<script" not in data["name"]
    assert "onclick" not in data["name"]
    assert "javascript:" not in data["description"]


async def test_duplicate_slug_conflicts(client, catalog, session_factory):
    payload = product_payload(catalog["category"].id, catalog["brand"].id, slug="lumen-oled-55")

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 409
    assert response.json()["error"]["message"] == "A product with this slug already exists"
    assert await _product_count(session_factory) == 1


async def test_duplicate_sku_conflicts(client, catalog):
    payload = product_payload(catalog["category"].id, catalog["brand"].id, sku="LUM-OLED-55")

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 409
    assert response.json()["error"]["message"] == "A product with this SKU already exists"


async def test_unknown_category(client, catalog):
    payload = product_payload(uuid.uuid4(), catalog["brand"].id)

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Category not found"


async def test_unknown_brand(client, catalog):
    payload = product_payload(catalog["category"].id, uuid.uuid4())

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Brand not found"


async def test_price_precision_is_validated(client, catalog, session_factory):
    payload = product_payload(catalog["category"].id, catalog["brand"].id, price=19.999)

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert "price" in response.json()["error"]["message"]
    assert await _product_count(session_factory) == 1


async def test_get_product_rejects_malformed_id(client):
    response = await client.get("/api/admin/products/not-a-uuid", headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid product ID format"


async def test_get_missing_product(client):
    response = await client.get(f"/api/admin/products/{uuid.uuid4()}", headers=ADMIN_HEADERS)

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Product not found"
    assert response.json()["error"]["code"] == "NOT_FOUND_ERROR"


async def test_get_product(client, catalog):
    product = catalog["product"]

    response = await client.get(f"/api/admin/products/{product.id}", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json()["data"]["sku"] == "LUM-OLED-55"


async def test_update_product(client, catalog):
    product = catalog["product"]
    payload = product_payload(
        catalog["other_category"].id,
        catalog["brand"].id,
        name="Lumen OLED 55 (2025)",
        slug="lumen-oled-55",
        sku="LUM-OLED-55",
        price=1199.5,
    )

    response = await client.put(f"/api/admin/products/{product.id}", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Lumen OLED 55 (2025)"
    assert data["price"] == 1199.5
    assert data["category"]["slug"] == "audio"


async def test_update_into_taken_slug_conflicts(client, catalog):
    created = await client.post(
        "/api/admin/products",
        json=product_payload(catalog["category"].id, catalog["brand"].id),
        headers=ADMIN_HEADERS,
    )
    payload = product_payload(catalog["category"].id, catalog["brand"].id, slug="lumen-oled-55", sku="LUM-QLED-65")

    response = await client.put(
        f"/api/admin/products/{created.json()['data']['id']}",
        json=payload,
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 409


async def test_delete_product(client, catalog):
    product = catalog["product"]

    response = await client.delete(f"/api/admin/products/{product.id}", headers=ADMIN_HEADERS)
    followup = await client.get(f"/api/admin/products/{product.id}", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json()["data"] == {"id": str(product.id), "name": "Lumen OLED 55"}
    assert followup.status_code == 404


async def test_ordered_product_cannot_be_deleted(client, catalog, db_session, session_factory):
    await _add_order_for(db_session, catalog["product"])

    response = await client.delete(f"/api/admin/products/{catalog['product'].id}", headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == (
        "Cannot delete product that has been ordered. Consider deactivating it instead."
    )
    assert await _product_count(session_factory) == 1


async def test_delete_requires_admin(client, catalog, session_factory):
    response = await client.delete(f"/api/admin/products/{catalog['product'].id}", headers=USER_HEADERS)

    assert response.status_code == 403
    assert await _product_count(session_factory) == 1


async def test_delete_uses_its_own_limit(app, client, catalog):
    app.state.settings = app.state.settings.model_copy(update={"RATE_LIMIT_DELETE_MAX": 1})

    first = await client.delete(f"/api/admin/products/{uuid.uuid4()}", headers=ADMIN_HEADERS)
    second = await client.delete(f"/api/admin/products/{uuid.uuid4()}", headers=ADMIN_HEADERS)

    assert first.status_code == 404
    assert second.status_code == 429


async def test_search_filters_and_sorting(client, catalog):
    await client.post(
        "/api/admin/products",
        json=product_payload(catalog["category"].id, catalog["brand"].id),
        headers=ADMIN_HEADERS,
    )
    await client.post(
        "/api/admin/products",
        json=product_payload(
            catalog["other_category"].id,
            catalog["brand"].id,
            name="Lumen Soundbar",
            slug="lumen-soundbar",
            sku="LUM-SB-1",
            price=199.0,
        ),
        headers=ADMIN_HEADERS,
    )

    by_price = await client.get("/api/admin/products?sort=price&order=asc", headers=ADMIN_HEADERS)
    in_tvs = await client.get("/api/admin/products?category=tvs&max_price=1000", headers=ADMIN_HEADERS)
    by_name = await client.get("/api/admin/products?search=sound", headers=ADMIN_HEADERS)
    paged = await client.get("/api/admin/products?sort=name&order=asc&limit=1&offset=1", headers=ADMIN_HEADERS)

    assert [p["slug"] for p in by_price.json()["data"]] == ["lumen-soundbar", "lumen-qled-65", "lumen-oled-55"]
    assert [p["slug"] for p in in_tvs.json()["data"]] == ["lumen-qled-65"]
    assert [p["slug"] for p in by_name.json()["data"]] == ["lumen-soundbar"]
    assert [p["slug"] for p in paged.json()["data"]] == ["lumen-qled-65"]


async def test_search_by_rating(client, catalog, db_session):
    created = await client.post(
        "/api/admin/products",
        json=product_payload(catalog["category"].id, catalog["brand"].id),
        headers=ADMIN_HEADERS,
    )
    qled_id = uuid.UUID(created.json()["data"]["id"])
    db_session.add_all([
        Review(product_id=qled_id, name="Sam", email="sam@example.com", rating=5,
               comment="Excellent picture quality", is_approved=True),
        Review(product_id=catalog["product"].id, name="Kim", email="kim@example.com", rating=2,
               comment="Too dim for my living room", is_approved=True),
        Review(product_id=catalog["product"].id, name="Bot", email="bot@example.com", rating=5,
               comment="Unmoderated praise here", is_approved=False),
    ])
    await db_session.commit()

    response = await client.get("/api/admin/products?sort=rating&order=desc", headers=ADMIN_HEADERS)

    assert [p["slug"] for p in response.json()["data"]] == ["lumen-qled-65", "lumen-oled-55"]


async def test_invalid_search_parameters(client):
    response = await client.get("/api/admin/products?limit=0", headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid query parameters"


async def test_unsupported_method_is_rejected(client):
    response = await client.patch("/api/admin/products", headers=ADMIN_HEADERS)

    assert response.status_code == 405


async def test_unique_constraint_backs_up_the_precheck(client, catalog, session_factory, log_stream, monkeypatch):
    async def no_match(*args, **kwargs):
        return None

    monkeypatch.setattr(product_repo, "find_product_id", no_match)
    payload = product_payload(catalog["category"].id, catalog["brand"].id, slug="lumen-oled-55")

    response = await client.post("/api/admin/products", json=payload, headers=ADMIN_HEADERS)

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "CONFLICT_ERROR"
    assert error["message"] == "A record with this value already exists"
    assert await _product_count(session_factory) == 1

    entries = [json.loads(line) for line in log_stream.getvalue().splitlines()]
    failures = [e for e in entries if e["message"].startswith("Database Operation Failed")]
    assert len(failures) == 1
    assert failures[0]["context"]["operation"] == "insert"
    assert failures[0]["context"]["table"] == "products"


async def test_search_is_timed_without_changing_results(client, catalog, log_stream):
    response = await client.get("/api/admin/products?sort=name&order=asc", headers=ADMIN_HEADERS)

    assert [p["slug"] for p in response.json()["data"]] == ["lumen-oled-55"]
    assert "Performance: admin product search failed" not in log_stream.getvalue()
