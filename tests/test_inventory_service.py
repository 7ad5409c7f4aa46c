from __future__ import annotations

import json
from urllib.parse import parse_qs, urlparse

import pytest
import responses

from conftest import BASE_URL, product_payload
from pharmacy_admin_sdk import query_keys
from pharmacy_admin_sdk.models_inventory import StockStatus
from pharmacy_admin_sdk.pagination import build_query
from pharmacy_admin_sdk.services import AdminServiceError, InventoryService

PRODUCTS_URL = f"{BASE_URL}/api/admin/products"


def _catalog() -> list[dict[str, object]]:
    return [
        product_payload("p1"),
        product_payload("p2", stockQuantity=5),
        product_payload("p3", stockQuantity=0),
        product_payload("p4", name="Amoxicillin", genericName="Amoxicillin", category="Antibiotics"),
    ]


@responses.activate
def test_load_products_paginates_client_side(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    state = InventoryService(session).load_products(page=2, page_size=3)
    page = state.data
    assert [product.id for product in page] == ["p4"]
    assert page.meta.total == 4
    assert page.page_range().range_start == 4
    assert page.page_range().total_pages == 2
    assert state.is_loading is False


@responses.activate
def test_load_products_applies_filters_locally(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    service = InventoryService(session)
    low = service.load_products({"stock_status": "low-stock", "category": "all"}).data
    assert [product.id for product in low] == ["p2"]
    query = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert query == {"stockStatus": ["low-stock"]}

    searched = service.load_products({"search": "amoxi"}).data
    assert [product.id for product in searched] == ["p4"]


@responses.activate
def test_load_products_serves_fresh_cache(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    service = InventoryService(session)
    service.load_products()
    service.load_products()
    assert len(responses.calls) == 1


@responses.activate
def test_update_stock_projects_and_confirms(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    responses.add(
        responses.PUT,
        f"{PRODUCTS_URL}/p1/stock",
        json=product_payload("p1", stockQuantity=3, updatedAt="2024-03-01T10:00:00Z"),
    )
    service = InventoryService(session)
    service.load_products()
    query = service.products_query()

    result = service.update_stock("p1", "3", "cycle count")

    assert result is not None
    assert result.stock_quantity == 3
    assert result.stock_status is StockStatus.LOW_STOCK
    cached = session.cache.get_data(query).find("p1")
    assert cached.stock_quantity == 3
    assert cached.updated_at is not None
    assert session.cache.peek(query).is_stale is True
    assert json.loads(responses.calls[1].request.body) == {"stockQuantity": 3, "adjustmentReason": "cycle count"}
    assert session.mutations.in_flight() == []


@responses.activate
def test_update_stock_rolls_back_on_server_error(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    responses.add(responses.PUT, f"{PRODUCTS_URL}/p1/stock", json={"message": "Database unavailable"}, status=500)
    service = InventoryService(session)
    service.load_products()
    query = service.products_query()

    with pytest.raises(AdminServiceError) as exc_info:
        service.update_stock("p1", 0)

    assert exc_info.value.message == "Database unavailable"
    assert exc_info.value.cause_type == "ServerError"
    assert session.cache.get_data(query).find("p1").stock_quantity == 25
    notifications = session.notifications.drain()
    assert [(n.level, n.title, n.message) for n in notifications] == [
        ("error", "Failed to update stock", "Database unavailable")
    ]
    assert notifications[0].details["record_id"] == "p1"


def test_update_stock_rejects_negative_without_request(session) -> None:
    with responses.RequestsMock() as mock:
        with pytest.raises(AdminServiceError) as exc_info:
            InventoryService(session).update_stock("p1", -4)
        assert len(mock.calls) == 0
    assert exc_info.value.details == "CLIENT_VALIDATION"
    assert exc_info.value.field == "stock_quantity"
    assert session.notifications.drain() == []


@responses.activate
def test_load_movements_uses_server_pagination(session) -> None:
    responses.add(
        responses.GET,
        f"{PRODUCTS_URL}/p1/movements",
        json={
            "movements": [
                {"id": "m1", "productId": "p1", "type": "IN", "quantity": 10},
                {"id": "m2", "productId": "p1", "type": "OUT", "quantity": 2},
            ],
            "pagination": {"page": 2, "pageSize": 2, "total": 5},
        },
    )
    state = InventoryService(session).load_movements("p1", {"type": "IN", "from": "2024-01-01"}, page=2, page_size=2)
    page = state.data
    assert [movement.id for movement in page] == ["m1", "m2"]
    page_range = page.page_range()
    assert (page_range.range_start, page_range.range_end, page_range.total_pages) == (3, 4, 3)
    query = parse_qs(urlparse(responses.calls[0].request.url).query)
    assert query["type"] == ["IN"]
    assert query["page"] == ["2"]
    assert query["dateFrom"][0].startswith("2024-01-01T00:00:00.000")


@responses.activate
def test_adjust_stock_invalidates_inventory_views(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    responses.add(
        responses.POST,
        f"{PRODUCTS_URL}/p1/adjustments",
        json={"movement": {"id": "m9", "productId": "p1", "type": "IN", "quantity": 4}},
        status=201,
    )
    service = InventoryService(session)
    service.load_products()
    movements_query = build_query(query_keys.product_movements("p1"), None)
    session.cache.set_data(movements_query, [])

    movement = service.adjust_stock("p1", {"type": "IN", "qty": 4, "reason": " restock "})

    assert movement is not None and movement.id == "m9"
    assert session.cache.peek(service.products_query()).is_stale is True
    assert session.cache.peek(movements_query).is_stale is True
    request = responses.calls[1].request
    assert request.headers["Idempotency-Key"].startswith("ui-")
    assert json.loads(request.body)["reason"] == "restock"
    assert session.notifications.drain()[0].title == "Stock adjusted"


@responses.activate
def test_bulk_update_invalidates_even_on_failure(session) -> None:
    responses.add(responses.GET, PRODUCTS_URL, json={"success": True, "data": _catalog()})
    responses.add(responses.PUT, f"{PRODUCTS_URL}/bulk-update", json={"message": "boom"}, status=500)
    service = InventoryService(session)
    service.load_products()
    with pytest.raises(AdminServiceError):
        service.bulk_update_stock([{"id": "p1", "stockQuantity": 1}])
    assert session.cache.peek(service.products_query()).is_stale is True


def test_filters_roundtrip_through_store(session) -> None:
    service = InventoryService(session)
    service.save_filters({"stock_status": "low_stock", "search": "para"})
    assert service.saved_filters() == {"stock_status": "low_stock", "search": "para"}
