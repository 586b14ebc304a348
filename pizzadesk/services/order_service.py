"""
Order business logic

Status changes are written conditionally (`status` must still be the one that
was read) so two staff members pressing "advance" at the same time cannot
skip a step: the slower request gets a Conflict and reloads.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete

from config import ORDER_COUNTER_NAME
from pizzadesk.core.exceptions import Conflict
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.core.permissions import OperationPolicy
from pizzadesk.database.models.notification import NotificationEvent
from pizzadesk.database.models.order import Order, OrderStatus, OrderType
from pizzadesk.database.models.user import User
from pizzadesk.database.store import DocumentStore
from pizzadesk.schemas.order import OrderCreate, OrderUpdate
from pizzadesk.services.customer_service import CustomerService
from pizzadesk.services.notification_service import NotificationDispatcher, NotificationService
from pizzadesk.services.order_lifecycle import (
    ensure_fits_flow, ensure_not_terminal, event_for_status, next_status, validate_transition
)
from pizzadesk.services.pricing import price_order, referenced_product_ids
from pizzadesk.services.product_service import ProductService

logger = get_i18n_logger(__name__)

# Fields of an order that may be edited while it is still in the kitchen
EDITABLE_FIELDS = ("customer_name", "order_type", "address", "location_link", "notes")


class OrderService:
    """Service for the order lifecycle"""

    # === Reads ===

    @staticmethod
    async def list_active(store: DocumentStore) -> list[Order]:
        """Every order that is not archived, newest first"""
        return await store.query(
            Order,
            Order.status != OrderStatus.ARCHIVED,
            order_by=[Order.timestamp.desc()],
        )

    @staticmethod
    async def get_order(store: DocumentStore, order_id: str) -> Order:
        return await store.get_or_404(Order, order_id, "Order")

    # === Creation ===

    @staticmethod
    async def create_order(
        store: DocumentStore,
        dispatcher: NotificationDispatcher,
        order_data: OrderCreate,
        actor: User,
    ) -> Order:
        """
        Create a new order.

        Process:
        1. Delivery orders need the orders.delivery policy
        2. Price every item from the current catalog
        3. Find or create the customer by phone
        4. Allocate the next order number
        5. Persist as Received and notify staff
        """
        if order_data.order_type == OrderType.DELIVERY:
            OperationPolicy.enforce(actor, "orders.delivery")

        catalog = await ProductService.catalog_for(store, referenced_product_ids(order_data.items))
        priced = price_order(order_data.items, catalog)

        customer = await CustomerService.resolve_for_order(
            store,
            name=order_data.customer_name,
            phone=order_data.customer_phone,
            order_type=order_data.order_type,
            address=order_data.address,
            location_link=order_data.location_link,
        )

        order_number = await store.increment_counter(ORDER_COUNTER_NAME)
        order = await store.add(Order(
            order_number=order_number,
            customer_id=customer.id if customer else None,
            customer_name=order_data.customer_name,
            customer_phone=customer.phone if customer else None,
            items=priced.items,
            total=priced.total,
            status=OrderStatus.RECEIVED,
            timestamp=datetime.now(timezone.utc),
            order_type=order_data.order_type,
            address=order_data.address,
            location_link=order_data.location_link,
            notes=order_data.notes,
        ))
        logger.info(
            "order.created",
            order_number=order.order_number,
            customer=order.customer_name,
            total=order.total,
            user=actor.email
        )

        await dispatcher.dispatch(NotificationEvent.ORDER_CREATED, order)
        return order

    # === Status changes ===

    @staticmethod
    async def _write_status_guarded(store: DocumentStore, order: Order, values: dict) -> Order:
        """Apply values only if the order still has the status it was read with"""
        observed = order.status
        applied = await store.conditional_update(Order, order.id, {"status": observed}, values)
        if not applied:
            logger.warning("order.conflict", order_number=order.order_number, status=observed.value)
            raise Conflict("The order was changed by someone else. Reload it and try again.")
        await store.session.refresh(order)
        return order

    @staticmethod
    async def _announce_status(dispatcher: NotificationDispatcher, order: Order, previous: OrderStatus) -> None:
        logger.info(
            "order.status.changed",
            order_number=order.order_number,
            old_status=previous.value,
            new_status=order.status.value
        )
        event = event_for_status(order.status)
        if event is not None:
            await dispatcher.dispatch(event, order)

    @staticmethod
    async def advance(store: DocumentStore, dispatcher: NotificationDispatcher, order_id: str) -> Order:
        """Move an order to the single next status of its flow"""
        order = await OrderService.get_order(store, order_id)
        previous = order.status
        target = next_status(previous, order.order_type)

        await OrderService._write_status_guarded(store, order, {"status": target})
        await OrderService._announce_status(dispatcher, order, previous)
        return order

    @staticmethod
    async def cancel(store: DocumentStore, dispatcher: NotificationDispatcher, order_id: str) -> Order:
        order = await OrderService.get_order(store, order_id)
        previous = order.status
        ensure_not_terminal(previous)

        await OrderService._write_status_guarded(store, order, {"status": OrderStatus.CANCELLED})
        await OrderService._announce_status(dispatcher, order, previous)
        return order

    # === Edits ===

    @staticmethod
    async def update_order(
        store: DocumentStore,
        dispatcher: NotificationDispatcher,
        order_id: str,
        patch: OrderUpdate,
        actor: User,
    ) -> Order:
        """
        Partial update of an order still in the kitchen.

        Items are re-priced from the catalog and the total recomputed. An
        optional status must be the next one of the flow or Cancelled. A
        status change announces its own event; otherwise an items change
        announces OrderEdited.
        """
        order = await OrderService.get_order(store, order_id)
        values = patch.model_dump(exclude_unset=True)
        target: Optional[OrderStatus] = values.pop("status", None)
        previous = order.status

        if values or (target is not None and target != previous):
            ensure_not_terminal(previous)

        changes = {field: values[field] for field in EDITABLE_FIELDS if field in values}
        if changes.get("customer_name") is None:
            changes.pop("customer_name", None)
        if changes.get("order_type") is None:
            changes.pop("order_type", None)
        elif changes["order_type"] != order.order_type:
            if changes["order_type"] == OrderType.DELIVERY:
                OperationPolicy.enforce(actor, "orders.delivery")
            ensure_fits_flow(previous, changes["order_type"])

        items_changed = False
        if patch.items is not None:
            catalog = await ProductService.catalog_for(store, referenced_product_ids(patch.items))
            priced = price_order(patch.items, catalog)
            items_changed = priced.items != order.items
            changes["items"] = priced.items
            changes["total"] = priced.total

        status_changed = target is not None and target != previous
        if status_changed:
            validate_transition(previous, target, changes.get("order_type", order.order_type))
            changes["status"] = target

        if not changes:
            return order

        await OrderService._write_status_guarded(store, order, changes)

        if status_changed:
            await OrderService._announce_status(dispatcher, order, previous)
        elif items_changed:
            logger.info("order.edited", order_number=order.order_number, user=actor.email)
            await dispatcher.dispatch(NotificationEvent.ORDER_EDITED, order)
        return order

    @staticmethod
    async def edit_order(
        store: DocumentStore,
        dispatcher: NotificationDispatcher,
        order_id: str,
        changes: OrderUpdate,
        actor: User,
    ) -> Order:
        """Edit content only; the status is left alone"""
        return await OrderService.update_order(
            store, dispatcher, order_id, changes.model_copy(update={"status": None}), actor
        )

    # === Removal ===

    @staticmethod
    async def delete_order(store: DocumentStore, order_id: str, actor: User) -> None:
        order = await OrderService.get_order(store, order_id)
        await store.delete(order)
        logger.info("order.deleted", order_number=order.order_number, user=actor.email)

    @staticmethod
    async def archive_all_and_reset(store: DocumentStore, actor: User) -> int:
        """
        Close the business day: archive every order that is not archived yet
        and restart the order numbers at 1, in a single transaction.
        """
        archived = await store.batch_update(
            Order,
            [Order.status != OrderStatus.ARCHIVED],
            {"status": OrderStatus.ARCHIVED},
            commit=False,
        )
        await store.reset_counter(ORDER_COUNTER_NAME, commit=False)
        await store.commit()
        logger.info("order.archived_all", count=archived, user=actor.email)
        return archived

    @staticmethod
    async def reset_app(store: DocumentStore, actor: User) -> None:
        """Wipe every order and notification (customers, products and users stay)"""
        await store.session.execute(delete(Order))
        await store.commit()
        await NotificationService.purge_all(store)
        logger.warning("app.reset", user=actor.email)
