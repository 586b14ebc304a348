"""
Order lifecycle over HTTP: creation, permissions, state machine, edits and
closing the business day
"""
import asyncio

import pytest
from sqlalchemy import select

from pizzadesk.core.exceptions import Conflict, InvalidTransition
from pizzadesk.database.models import Customer, Notification, Order, OrderStatus, OrderType, UserStatus
from pizzadesk.database.store import DocumentStore
from pizzadesk.schemas.order import OrderCreate, OrderItemCreate, OrderUpdate
from pizzadesk.services.notification_service import NotificationDispatcher
from pizzadesk.services.order_service import OrderService

API = "/api/v1"


def pizza(product, size="large", quantity=1):
    return {"productId": product.id, "quantity": quantity, "size": size}


def pickup(catalog, **fields):
    body = {
        "customerName": "Diego",
        "customerPhone": "(11) 98765-4321",
        "orderType": "pickup",
        "items": [pizza(catalog["margherita"]), pizza(catalog["cola"], size="2L", quantity=2)],
    }
    body.update(fields)
    return body


async def fetch_all(session_factory, model, *criteria):
    """Read through a fresh session so nothing comes from an identity map"""
    async with session_factory() as session:
        result = await session.execute(select(model).where(*criteria))
        return list(result.scalars().all())


# ─── Creation ──────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_orders_are_numbered_priced_and_announced(client, auth, admin, employee, catalog, session_factory):
    first = await client.post(f"{API}/orders", json=pickup(catalog), headers=auth(employee))
    second = await client.post(f"{API}/orders", json=pickup(catalog, customerName="Ana"), headers=auth(employee))

    assert first.status_code == 201, first.text
    assert second.status_code == 201
    body = first.json()
    assert body["orderNumber"] == 1
    assert second.json()["orderNumber"] == 2
    assert body["status"] == "Received"
    assert body["total"] == 73.0
    assert body["customerPhone"] == "11987654321"
    assert body["customerId"] is not None
    assert [item["unitPrice"] for item in body["items"]] == [45.0, 14.0]

    created = await fetch_all(session_factory, Notification, Notification.user_id == employee.key)
    assert len(created) == 2
    assert "New order #1 received from Diego." in {n.message for n in created}


@pytest.mark.asyncio
async def test_simultaneous_orders_from_a_new_phone(employee, catalog, session_factory, push, alerts):
    """Parallel first orders from one phone get consecutive numbers and share one customer"""
    async def place(name):
        async with session_factory() as session:
            store = DocumentStore(session)
            order = await OrderService.create_order(
                store,
                NotificationDispatcher(store, push, alerts),
                OrderCreate(
                    customer_name=name,
                    customer_phone="(11) 91234-5678",
                    items=[OrderItemCreate(product_id=catalog["margherita"].id, quantity=1, size="small")],
                ),
                employee,
            )
            return order.order_number, order.customer_id

    placed = await asyncio.gather(*(place(f"Diego {i}") for i in range(6)))

    assert sorted(number for number, _ in placed) == [1, 2, 3, 4, 5, 6]
    [customer] = await fetch_all(session_factory, Customer)
    assert customer.phone == "11912345678"
    assert {customer_id for _, customer_id in placed} == {customer.id}


@pytest.mark.asyncio
async def test_half_and_half_costs_the_pricier_flavor(client, auth, employee, catalog):
    item = {
        "productId": catalog["margherita"].id,
        "product2Id": catalog["pepperoni"].id,
        "isHalfHalf": True,
        "quantity": 2,
        "size": "large",
    }
    response = await client.post(f"{API}/orders", json=pickup(catalog, items=[item]), headers=auth(employee))

    assert response.status_code == 201, response.text
    [line] = response.json()["items"]
    assert line["productName"] == "Half & Half: Margherita / Pepperoni"
    assert line["unitPrice"] == 52.5
    assert response.json()["total"] == 105.0


@pytest.mark.asyncio
async def test_order_without_items_is_rejected(client, auth, employee, catalog):
    response = await client.post(f"{API}/orders", json=pickup(catalog, items=[]), headers=auth(employee))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_product_is_not_found(client, auth, employee, catalog):
    body = pickup(catalog, items=[{"productId": "nope", "quantity": 1, "size": "large"}])
    response = await client.post(f"{API}/orders", json=body, headers=auth(employee))
    assert response.status_code == 404


# ─── Permissions ───────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_only_administrators_take_delivery_orders(client, auth, admin, employee, catalog):
    body = pickup(catalog, orderType="delivery", address="Rua das Flores, 12")

    denied = await client.post(f"{API}/orders", json=body, headers=auth(employee))
    allowed = await client.post(f"{API}/orders", json=body, headers=auth(admin))

    assert denied.status_code == 403
    assert allowed.status_code == 201
    assert allowed.json()["orderType"] == "delivery"


@pytest.mark.asyncio
async def test_orders_need_credentials(client):
    response = await client.get(f"{API}/orders")
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_pending_accounts_cannot_see_orders(client, auth, make_user):
    pending = await make_user("Paula New", status=UserStatus.PENDING)
    response = await client.get(f"{API}/orders", headers=auth(pending))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_employees_cannot_delete_orders(client, auth, admin, employee, make_order):
    order = await make_order()
    assert (await client.delete(f"{API}/orders/{order.id}", headers=auth(employee))).status_code == 403
    assert (await client.delete(f"{API}/orders/{order.id}", headers=auth(admin))).status_code == 204
    assert (await client.get(f"{API}/orders/{order.id}", headers=auth(admin))).status_code == 404


# ─── State machine ─────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_pickup_order_walks_its_flow(client, auth, employee, make_order):
    order = await make_order(order_type=OrderType.PICKUP)

    seen = []
    for _ in range(3):
        response = await client.post(f"{API}/orders/{order.id}/advance", headers=auth(employee))
        assert response.status_code == 200
        seen.append(response.json()["status"])

    assert seen == ["Preparing", "Ready", "Delivered"]
    response = await client.post(f"{API}/orders/{order.id}/advance", headers=auth(employee))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_delivery_order_goes_out_before_delivered(client, auth, employee, make_order):
    order = await make_order(status=OrderStatus.READY, order_type=OrderType.DELIVERY)
    response = await client.post(f"{API}/orders/{order.id}/advance", headers=auth(employee))
    assert response.json()["status"] == "OutForDelivery"


@pytest.mark.asyncio
async def test_ready_order_alerts_staff(client, auth, admin, employee, make_order, session_factory, push):
    order = await make_order(number=5, status=OrderStatus.PREPARING)

    await client.post(f"{API}/orders/{order.id}/advance", headers=auth(employee))

    ready = await fetch_all(session_factory, Notification, Notification.message == "Order #5 is READY for PICKUP!")
    assert {n.user_id for n in ready} == {admin.key, employee.key}
    assert push.tokens() == ["admin-device"]


@pytest.mark.asyncio
async def test_cancelled_order_cannot_be_cancelled_again(client, auth, employee, make_order):
    order = await make_order()
    first = await client.post(f"{API}/orders/{order.id}/cancel", headers=auth(employee))
    again = await client.post(f"{API}/orders/{order.id}/cancel", headers=auth(employee))
    assert first.json()["status"] == "Cancelled"
    assert again.status_code == 409


@pytest.mark.asyncio
async def test_put_cannot_skip_a_step(client, auth, employee, make_order):
    order = await make_order()
    response = await client.put(f"{API}/orders/{order.id}", json={"status": "Ready"}, headers=auth(employee))
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_put_may_cancel(client, auth, employee, make_order):
    order = await make_order(status=OrderStatus.PREPARING)
    response = await client.put(f"{API}/orders/{order.id}", json={"status": "Cancelled"}, headers=auth(employee))
    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"


@pytest.mark.asyncio
async def test_order_out_for_delivery_cannot_become_pickup(client, auth, employee, make_order, session_factory):
    order = await make_order(status=OrderStatus.OUT_FOR_DELIVERY, order_type=OrderType.DELIVERY)

    response = await client.put(f"{API}/orders/{order.id}", json={"orderType": "pickup"}, headers=auth(employee))

    assert response.status_code == 409
    [stored] = await fetch_all(session_factory, Order, Order.id == order.id)
    assert stored.order_type == OrderType.DELIVERY
    assert stored.status == OrderStatus.OUT_FOR_DELIVERY


@pytest.mark.asyncio
async def test_ready_delivery_order_can_switch_to_pickup_and_finish(client, auth, employee, make_order):
    order = await make_order(status=OrderStatus.READY, order_type=OrderType.DELIVERY)

    switched = await client.put(f"{API}/orders/{order.id}", json={"orderType": "pickup"}, headers=auth(employee))
    advanced = await client.post(f"{API}/orders/{order.id}/advance", headers=auth(employee))

    assert switched.status_code == 200, switched.text
    assert switched.json()["orderType"] == "pickup"
    assert advanced.json()["status"] == "Delivered"


@pytest.mark.asyncio
async def test_stale_status_write_is_a_conflict(store, dispatcher, session_factory, make_order):
    order = await make_order()

    # Someone else advances the order meanwhile
    async with session_factory() as other:
        await DocumentStore(other).conditional_update(
            Order, order.id, {"status": OrderStatus.RECEIVED}, {"status": OrderStatus.PREPARING}
        )

    with pytest.raises(Conflict):
        await OrderService.advance(store, dispatcher, order.id)

    [stored] = await fetch_all(session_factory, Order, Order.id == order.id)
    assert stored.status == OrderStatus.PREPARING


# ─── Edits ─────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_put_items_recomputes_the_total_and_announces_the_edit(
    client, auth, employee, catalog, session_factory
):
    created = await client.post(f"{API}/orders", json=pickup(catalog), headers=auth(employee))
    order_id = created.json()["id"]

    response = await client.put(
        f"{API}/orders/{order_id}",
        json={"items": [pizza(catalog["pepperoni"], size="small", quantity=2)], "notes": "no onions"},
        headers=auth(employee),
    )

    assert response.status_code == 200, response.text
    assert response.json()["total"] == 70.0
    assert response.json()["notes"] == "no onions"
    assert response.json()["status"] == "Received"

    edited = await fetch_all(session_factory, Notification, Notification.related_url == f"/orders?open={order_id}")
    assert [n.message for n in edited] == ["Order #1 was modified."]


@pytest.mark.asyncio
async def test_notes_only_edit_is_silent(store, dispatcher, employee, make_order, session_factory):
    order = await make_order()
    await OrderService.edit_order(store, dispatcher, order.id, OrderUpdate(notes="ring twice"), employee)

    assert order.notes == "ring twice"
    assert await fetch_all(session_factory, Notification) == []


@pytest.mark.asyncio
async def test_terminal_orders_cannot_be_edited(store, dispatcher, employee, catalog, make_order):
    order = await make_order(status=OrderStatus.DELIVERED)
    changes = OrderUpdate(items=[OrderItemCreate(product_id=catalog["margherita"].id, quantity=1, size="small")])
    with pytest.raises(InvalidTransition):
        await OrderService.edit_order(store, dispatcher, order.id, changes, employee)


@pytest.mark.asyncio
async def test_status_change_wins_over_edit_announcement(
    store, dispatcher, employee, catalog, make_order, session_factory
):
    order = await make_order(number=8, status=OrderStatus.PREPARING)
    patch = OrderUpdate(
        status=OrderStatus.READY,
        items=[OrderItemCreate(product_id=catalog["margherita"].id, quantity=1, size="small")],
    )

    await OrderService.update_order(store, dispatcher, order.id, patch, employee)

    messages = {n.message for n in await fetch_all(session_factory, Notification)}
    assert messages == {"Order #8 is READY for PICKUP!"}
    assert order.total == 30.0


# ─── Closing the day ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_archive_all_restarts_the_numbering(client, auth, admin, employee, catalog):
    for _ in range(3):
        await client.post(f"{API}/orders", json=pickup(catalog), headers=auth(employee))

    denied = await client.delete(f"{API}/orders/delete-all", headers=auth(employee))
    archived = await client.delete(f"{API}/orders/delete-all", headers=auth(admin))

    assert denied.status_code == 403
    assert archived.status_code == 204
    assert (await client.get(f"{API}/orders", headers=auth(employee))).json() == []

    next_order = await client.post(f"{API}/orders", json=pickup(catalog), headers=auth(employee))
    assert next_order.json()["orderNumber"] == 1


@pytest.mark.asyncio
async def test_archived_orders_leave_the_active_list(client, auth, employee, make_order):
    await make_order(number=1, status=OrderStatus.ARCHIVED)
    active = await make_order(number=2)

    response = await client.get(f"{API}/orders", headers=auth(employee))
    assert [order["id"] for order in response.json()] == [active.id]


@pytest.mark.asyncio
async def test_app_reset_wipes_orders_and_notifications(client, auth, admin, employee, catalog, session_factory):
    await client.post(f"{API}/orders", json=pickup(catalog), headers=auth(employee))

    assert (await client.post(f"{API}/app-reset", headers=auth(employee))).status_code == 403
    response = await client.post(f"{API}/app-reset", headers=auth(admin))

    assert response.status_code == 200
    assert await fetch_all(session_factory, Order) == []
    assert await fetch_all(session_factory, Notification) == []

