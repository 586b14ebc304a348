"""
Revenue reports

Days are UTC calendar days.
"""
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from pizzadesk.core.i18n_logger import translate
from pizzadesk.database.base import as_utc
from pizzadesk.database.models.order import Order, OrderStatus
from pizzadesk.database.store import DocumentStore
from pizzadesk.schemas.order import DailyRevenue, RevenueStats, TopProduct
from pizzadesk.services.pricing import HALF_HALF_PREFIX

WEEK_DAYS = 7
TOP_PRODUCTS_LIMIT = 5


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def weekday_name(day: date) -> str:
    """Short weekday in the configured language ("Mon", "seg", ...)"""
    return translate(f"weekday.short.{day.weekday()}")


def _sum_totals(orders: list[Order]) -> float:
    return round(sum(order.total for order in orders), 2)


class ReportService:

    @staticmethod
    async def _orders_between(store: DocumentStore, start: datetime, end: datetime, *excluded: OrderStatus) -> list[Order]:
        criteria = [Order.timestamp >= start, Order.timestamp < end]
        if excluded:
            criteria.append(Order.status.not_in(excluded))
        return await store.query(Order, *criteria)

    @staticmethod
    async def weekly_revenue(store: DocumentStore, today: Optional[date] = None) -> list[DailyRevenue]:
        """
        Revenue of the last seven days, oldest first, ending today.

        Cancelled orders are left out; archived ones still count.
        """
        today = today or datetime.now(timezone.utc).date()
        days = [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]
        buckets = {day: 0.0 for day in days}

        orders = await ReportService._orders_between(
            store, day_start(days[0]), day_start(today + timedelta(days=1)), OrderStatus.CANCELLED
        )
        for order in orders:
            placed = as_utc(order.timestamp).date()
            if placed in buckets:
                buckets[placed] += order.total

        return [
            DailyRevenue(date=day.isoformat(), name=weekday_name(day), revenue=round(revenue, 2))
            for day, revenue in buckets.items()
        ]

    @staticmethod
    async def revenue_stats(store: DocumentStore, today: Optional[date] = None) -> RevenueStats:
        """
        Today's revenue counts only the orders of the open business day (not
        cancelled, not archived yet); yesterday's counts every non-cancelled order.
        """
        today = today or datetime.now(timezone.utc).date()
        yesterday = today - timedelta(days=1)

        today_orders = await ReportService._orders_between(
            store, day_start(today), day_start(today + timedelta(days=1)),
            OrderStatus.CANCELLED, OrderStatus.ARCHIVED
        )
        yesterday_orders = await ReportService._orders_between(
            store, day_start(yesterday), day_start(today), OrderStatus.CANCELLED
        )
        return RevenueStats(
            today_revenue=_sum_totals(today_orders),
            yesterday_revenue=_sum_totals(yesterday_orders),
        )

    @staticmethod
    async def top_products(store: DocumentStore, limit: int = TOP_PRODUCTS_LIMIT) -> list[TopProduct]:
        """Best sellers by quantity over active orders; every half and half counts as one product"""
        orders = await store.query(
            Order, Order.status.not_in((OrderStatus.CANCELLED, OrderStatus.ARCHIVED))
        )
        counts: Counter[str] = Counter()
        half_half = translate("report.half_half")
        for order in orders:
            for item in order.items:
                name = item["product_name"]
                if item.get("is_half_half") or name.startswith(HALF_HALF_PREFIX):
                    name = half_half
                counts[name] += item["quantity"]

        return [TopProduct(name=name, count=count) for name, count in counts.most_common(limit)]
