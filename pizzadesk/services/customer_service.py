"""
Customer business logic

Aggregates (order count, total spent, last order date) are folded from the
orders on every read. An order belongs to a customer when its customer_id
matches or, for orders taken before the customer record existed, when its
normalized phone matches.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import or_

from pizzadesk.core.exceptions import Conflict, ValidationError
from pizzadesk.core.i18n_logger import get_i18n_logger
from pizzadesk.database.base import as_utc
from pizzadesk.database.models.customer import Customer, normalize_phone
from pizzadesk.database.models.order import Order, OrderStatus, OrderType
from pizzadesk.database.store import DocumentStore
from pizzadesk.schemas.customer import CustomerCreate, CustomerResponse, CustomerUpdate

logger = get_i18n_logger(__name__)


@dataclass
class CustomerStats:
    order_count: int = 0
    total_spent: float = 0.0
    last_order_date: Optional[datetime] = None  # None means "never ordered"

    def add(self, order: Order) -> None:
        self.order_count += 1
        if order.status != OrderStatus.CANCELLED:
            self.total_spent = round(self.total_spent + order.total, 2)
        placed = as_utc(order.timestamp)
        if self.last_order_date is None or placed > self.last_order_date:
            self.last_order_date = placed


def belongs_to(order: Order, customer: Customer) -> bool:
    if order.customer_id and order.customer_id == customer.id:
        return True
    return bool(order.customer_phone) and order.customer_phone == customer.phone


def fold_stats(customer: Customer, orders: Iterable[Order]) -> CustomerStats:
    """Each order is counted once even if it matches by id and by phone"""
    stats = CustomerStats()
    for order in orders:
        if belongs_to(order, customer):
            stats.add(order)
    return stats


def to_response(customer: Customer, stats: CustomerStats) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        name=customer.name,
        phone=customer.phone,
        address=customer.address,
        location_link=customer.location_link,
        order_count=stats.order_count,
        total_spent=stats.total_spent,
        last_order_date=stats.last_order_date,
    )


def _require_phone(phone: Optional[str]) -> str:
    digits = normalize_phone(phone)
    if not digits:
        raise ValidationError("A phone number with at least one digit is required")
    return digits


class CustomerService:
    """Service for customer records and their order history"""

    @staticmethod
    async def _orders_of(store: DocumentStore, customer: Customer) -> list[Order]:
        return await store.query(
            Order,
            or_(Order.customer_id == customer.id, Order.customer_phone == customer.phone),
            order_by=[Order.timestamp.desc()],
        )

    @staticmethod
    async def list_customers(store: DocumentStore) -> list[CustomerResponse]:
        """All customers sorted by name, with aggregates from a single pass over the orders"""
        customers = await store.query(Customer, order_by=[Customer.name])
        if not customers:
            return []

        by_id = {customer.id: customer for customer in customers}
        by_phone = {customer.phone: customer for customer in customers}
        stats = {customer.id: CustomerStats() for customer in customers}

        for order in await store.query(Order):
            matched = set()
            if order.customer_id in by_id:
                matched.add(order.customer_id)
            if order.customer_phone and order.customer_phone in by_phone:
                matched.add(by_phone[order.customer_phone].id)
            for customer_id in matched:
                stats[customer_id].add(order)

        return [to_response(customer, stats[customer.id]) for customer in customers]

    @staticmethod
    async def get_customer(store: DocumentStore, customer_id: str) -> CustomerResponse:
        customer = await store.get_or_404(Customer, customer_id, "Customer")
        orders = await CustomerService._orders_of(store, customer)
        return to_response(customer, fold_stats(customer, orders))

    @staticmethod
    async def find_by_phone(store: DocumentStore, phone: str) -> Optional[Customer]:
        digits = normalize_phone(phone)
        if not digits:
            return None
        return await store.first(Customer, Customer.phone == digits)

    @staticmethod
    async def get_by_phone(store: DocumentStore, phone: str) -> list[CustomerResponse]:
        """Phone lookup used by the order form; empty when nobody matches"""
        customer = await CustomerService.find_by_phone(store, phone)
        if customer is None:
            return []
        orders = await CustomerService._orders_of(store, customer)
        return [to_response(customer, fold_stats(customer, orders))]

    @staticmethod
    async def create_customer(store: DocumentStore, data: CustomerCreate) -> CustomerResponse:
        phone = _require_phone(data.phone)
        if await store.first(Customer, Customer.phone == phone):
            raise Conflict("A customer with this phone number already exists")

        customer = await store.add(Customer(
            name=data.name.strip(),
            phone=phone,
            address=data.address,
            location_link=data.location_link,
        ))
        logger.info("customer.created", name=customer.name, phone=phone)

        # Orders taken before the record existed already count for it
        orders = await CustomerService._orders_of(store, customer)
        return to_response(customer, fold_stats(customer, orders))

    @staticmethod
    async def update_customer(store: DocumentStore, customer_id: str, data: CustomerUpdate) -> CustomerResponse:
        customer = await store.get_or_404(Customer, customer_id, "Customer")
        values = data.model_dump(exclude_unset=True)

        if "phone" in values:
            phone = _require_phone(values["phone"])
            if phone != customer.phone:
                taken = await store.first(Customer, Customer.phone == phone, Customer.id != customer.id)
                if taken:
                    raise Conflict("A customer with this phone number already exists")
            values["phone"] = phone
        if values.get("name") is not None:
            values["name"] = values["name"].strip()
        elif "name" in values:
            del values["name"]

        await store.update(customer, values)
        logger.info("customer.updated", name=customer.name)
        return await CustomerService.get_customer(store, customer.id)

    @staticmethod
    async def delete_customer(store: DocumentStore, customer_id: str) -> None:
        """Hard delete; orders keep their frozen name and phone"""
        customer = await store.get_or_404(Customer, customer_id, "Customer")
        await store.delete(customer)
        logger.info("customer.deleted", name=customer.name)

    @staticmethod
    async def history(store: DocumentStore, customer_id: str) -> list[Order]:
        customer = await store.get_or_404(Customer, customer_id, "Customer")
        return await CustomerService._orders_of(store, customer)

    @staticmethod
    async def resolve_for_order(
        store: DocumentStore,
        name: str,
        phone: Optional[str],
        order_type: OrderType,
        address: Optional[str] = None,
        location_link: Optional[str] = None,
    ) -> Optional[Customer]:
        """
        Find the customer of a new order by normalized phone, creating it when
        unknown. A delivery order refreshes the stored address and location link.

        Orders without a phone are anonymous walk-ins.
        """
        digits = normalize_phone(phone)
        if not digits:
            return None

        customer = await store.first(Customer, Customer.phone == digits)
        if customer is None:
            try:
                customer = await store.add(Customer(
                    name=name,
                    phone=digits,
                    address=address if order_type == OrderType.DELIVERY else None,
                    location_link=location_link if order_type == OrderType.DELIVERY else None,
                ))
            except Conflict:
                # Created by a concurrent order with the same phone
                customer = await store.first(Customer, Customer.phone == digits)
                if customer is None:
                    raise
            else:
                logger.info("customer.created", name=customer.name, phone=digits)
                return customer

        if order_type == OrderType.DELIVERY:
            changes = {}
            if address and address != customer.address:
                changes["address"] = address
            if location_link and location_link != customer.location_link:
                changes["location_link"] = location_link
            if changes:
                await store.update(customer, changes)
                logger.debug("customer.address.refreshed", name=customer.name)
        return customer
