from datetime import date
from decimal import Decimal
from typing import Dict, Iterable
from cafe_pos.core.clock import day_bounds
from cafe_pos.core.config import DB_CONNECTION_NAME
from cafe_pos.core.db import get_connection
from cafe_pos.models.order import Order, OrderStatus
from cafe_pos.schemas.report import DailyReport, ReportSummary, TopProduct


def summarize_orders(day: date, orders: Iterable[Order]) -> DailyReport:
    """Revenue, order count, average ticket and best sellers for a set of orders with prefetched items."""
    revenue = Decimal("0")
    count = 0
    products: Dict[int, TopProduct] = {}

    for order in orders:
        count += 1
        revenue += Decimal(order.total_price)
        for item in order.items:
            entry = products.get(item.product_id)
            if entry is None:
                entry = TopProduct(product_id=item.product_id, name=item.product.name, total_sold=0, revenue=Decimal("0"))
                products[item.product_id] = entry
            entry.total_sold += item.quantity
            entry.revenue += item.quantity * Decimal(item.price_per_item)

    average = (revenue / count).quantize(Decimal("0.01")) if count else Decimal("0")
    top = sorted(products.values(), key=lambda p: (-p.total_sold, -p.revenue, p.name))
    return DailyReport(
        day=day,
        summary=ReportSummary(total_revenue=revenue, total_orders=count, average_order_value=average),
        top_products=top,
    )


async def daily_report(day: date, connection_name: str = DB_CONNECTION_NAME) -> DailyReport:
    """Sales of orders created on `day` that have been completed."""
    start, end = day_bounds(day)
    orders = await (
        Order.filter(status=OrderStatus.COMPLETED, created_at__gte=start, created_at__lt=end)
        .using_db(get_connection(connection_name))
        .prefetch_related("items", "items__product")
    )
    return summarize_orders(day, orders)
