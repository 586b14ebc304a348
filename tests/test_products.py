"""
Catalog management
"""
import pytest

API = "/api/v1/products"


@pytest.mark.asyncio
async def test_create_sized_pizza(client, auth, employee):
    response = await client.post(
        API,
        json={"name": "Calabresa", "category": "Pizza", "sizes": {"small": 32, "large": 48}},
        headers=auth(employee),
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["sizes"] == {"small": 32.0, "large": 48.0}
    assert body["price"] is None
    assert body["isAvailable"] is True


@pytest.mark.asyncio
async def test_pizza_without_sizes_is_rejected(client, auth, employee):
    response = await client.post(API, json={"name": "Calabresa", "category": "Pizza", "price": 40}, headers=auth(employee))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_extra_needs_a_flat_price(client, auth, employee):
    response = await client.post(API, json={"name": "Bacon", "category": "Extra"}, headers=auth(employee))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_negative_size_price_is_rejected(client, auth, employee):
    response = await client.post(
        API, json={"name": "Cola", "category": "Drink", "sizes": {"can": -1}}, headers=auth(employee)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_available_only_filter(client, auth, employee, catalog):
    off = catalog["pepperoni"]
    update = await client.put(f"{API}/{off.id}", json={"isAvailable": False}, headers=auth(employee))
    assert update.status_code == 200

    everything = await client.get(API, headers=auth(employee))
    available = await client.get(API, params={"available_only": "true"}, headers=auth(employee))

    assert len(everything.json()) == 4
    assert off.id not in {product["id"] for product in available.json()}
    assert len(available.json()) == 3


@pytest.mark.asyncio
async def test_update_rechecks_pricing(client, auth, employee, catalog):
    response = await client.put(f"{API}/{catalog['margherita'].id}", json={"sizes": {}}, headers=auth(employee))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_product(client, auth, employee, catalog):
    product_id = catalog["border"].id
    assert (await client.delete(f"{API}/{product_id}", headers=auth(employee))).status_code == 204
    assert (await client.get(f"{API}/{product_id}", headers=auth(employee))).status_code == 404


@pytest.mark.asyncio
async def test_unavailable_product_cannot_be_ordered(client, auth, employee, catalog):
    pepperoni = catalog["pepperoni"]
    await client.put(f"{API}/{pepperoni.id}", json={"isAvailable": False}, headers=auth(employee))

    response = await client.post(
        "/api/v1/orders",
        json={"customerName": "Diego", "items": [{"productId": pepperoni.id, "quantity": 1, "size": "large"}]},
        headers=auth(employee),
    )
    assert response.status_code == 400
