import logging
from tortoise.transactions import in_transaction
from typing import Any, Dict, List, Optional
from decimal import Decimal
from cafe_pos.core.config import DB_CONNECTION_NAME
from cafe_pos.core.db import get_connection
from cafe_pos.core.errors import (
    CompletionFailed,
    DomainError,
    EmptyOrder,
    OrderAlreadyCompleted,
    OrderNotFound,
    OrderNotFoundOrEmpty,
    OrderNotOpen,
    ProductNotFound,
)
from cafe_pos.models.catalog import Product, ProductIngredient
from cafe_pos.models.order import Order, OrderItem, OrderStatus
from cafe_pos.schemas.order import OrderLineRequest
from cafe_pos.services import audit_service
from cafe_pos.services.audit_service import AuditAction, AuditModule
from cafe_pos.services.stock_service import adjust_stock

log = logging.getLogger(__name__)


async def _ensure_products_exist(conn: Any, lines: List[OrderLineRequest]) -> None:
    product_ids = {line.product_id for line in lines}
    found = set(await Product.filter(id__in=product_ids).using_db(conn).values_list("id", flat=True))
    missing = sorted(product_ids - found)
    if missing:
        raise ProductNotFound(missing[0])


async def _write_lines(conn: Any, order_id: int, lines: List[OrderLineRequest]) -> None:
    for line in lines:
        await OrderItem.create(
            order_id=order_id,
            product_id=line.product_id,
            quantity=line.quantity,
            price_per_item=line.unit_price,
            using_db=conn,
        )


def order_total(lines: List[OrderLineRequest]) -> Decimal:
    """Sum of quantity x unit price exactly as the caller priced each line."""
    return sum((line.unit_price * line.quantity for line in lines), Decimal("0"))


async def create_order(user_id: int, lines: List[OrderLineRequest], connection_name: str = DB_CONNECTION_NAME) -> Order:
    """
    Creates an open Order with its lines atomically. The creator is also the
    acting user of the audit entry.
    """
    if not lines:
        raise EmptyOrder()

    async with in_transaction(connection_name) as conn:
        await _ensure_products_exist(conn, lines)

        total = order_total(lines)
        order = await Order.create(
            user_id=user_id,
            status=OrderStatus.OPEN,
            total_price=total,
            using_db=conn,
        )
        await _write_lines(conn, order.id, lines)

        await audit_service.record(
            conn, user_id, AuditAction.CREATE_ORDER, AuditModule.ORDERS,
            f"Created order #{order.id} ({len(lines)} items, total {total})",
        )

    log.info("Order %s created by user %s.", order.id, user_id)
    return order


async def update_order(
    order_id: int,
    lines: List[OrderLineRequest],
    total_price: Decimal,
    acting_user_id: int,
    connection_name: str = DB_CONNECTION_NAME,
) -> Order:
    """Replaces all lines of an open order and overwrites its total."""
    if not lines:
        raise EmptyOrder()

    async with in_transaction(connection_name) as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFound(order_id)

        # Lines of a completed or cancelled order are frozen
        if order.status != OrderStatus.OPEN:
            raise OrderNotOpen(order_id, order.status.value)

        await _ensure_products_exist(conn, lines)

        await OrderItem.filter(order_id=order_id).using_db(conn).delete()
        await _write_lines(conn, order_id, lines)

        order.total_price = total_price
        await order.save(update_fields=["total_price"], using_db=conn)

        await audit_service.record(
            conn, acting_user_id, AuditAction.UPDATE_ORDER, AuditModule.ORDERS,
            f"Updated order #{order_id} ({len(lines)} items, total {total_price})",
        )

    log.info("Order %s updated by user %s.", order_id, acting_user_id)
    return order


async def compute_consumption(conn: Any, lines: List[OrderItem]) -> Dict[int, Decimal]:
    """
    Expands order lines through their products' bills of materials into the
    total quantity needed per ingredient, in first-seen ingredient order.
    """
    product_ids = {line.product_id for line in lines}
    bom_rows = await ProductIngredient.filter(product_id__in=product_ids).using_db(conn).order_by("id")

    bom_by_product: Dict[int, List[ProductIngredient]] = {}
    for row in bom_rows:
        bom_by_product.setdefault(row.product_id, []).append(row)

    consumption: Dict[int, Decimal] = {}
    for line in lines:
        for row in bom_by_product.get(line.product_id, []):
            total_needed = line.quantity * row.quantity_needed
            consumption[row.ingredient_id] = consumption.get(row.ingredient_id, Decimal("0")) + total_needed
    return consumption


async def complete_order(order_id: int, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Order:
    """
    Fulfills an open order: deducts every ingredient in the combined bill of
    materials from stock and marks the order completed, all in one
    transaction. Stock is allowed to go negative.

    Raises OrderNotFoundOrEmpty, OrderAlreadyCompleted or IngredientNotFound
    as-is; any other failure is rolled back and reported as CompletionFailed.
    """
    try:
        async with in_transaction(connection_name) as conn:
            order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
            if not order:
                raise OrderNotFoundOrEmpty(order_id)

            # Deducting twice would double-decrement stock
            if order.status != OrderStatus.OPEN:
                raise OrderAlreadyCompleted(order_id, order.status.value)

            lines = await OrderItem.filter(order_id=order_id).using_db(conn).order_by("id")
            if not lines:
                raise OrderNotFoundOrEmpty(order_id)

            consumption = await compute_consumption(conn, lines)
            for ingredient_id, total_needed in consumption.items():
                await adjust_stock(conn, ingredient_id, -total_needed)

            # Conditional flip: only one of two racing completions can match 'open'
            updated = await (
                Order.filter(id=order_id, status=OrderStatus.OPEN)
                .using_db(conn)
                .update(status=OrderStatus.COMPLETED)
            )
            if not updated:
                raise OrderAlreadyCompleted(order_id)
            order.status = OrderStatus.COMPLETED

            await audit_service.record(
                conn, acting_user_id, AuditAction.COMPLETE_ORDER, AuditModule.ORDERS,
                f"Completed order #{order_id} ({len(consumption)} ingredients deducted)",
            )
    except DomainError as e:
        log.warning("Order %s not completed: %s", order_id, e)
        raise
    except Exception as e:
        log.exception("Unexpected failure completing order %s; transaction rolled back.", order_id)
        raise CompletionFailed(order_id) from e

    log.info("Order %s completed by user %s.", order_id, acting_user_id)
    return order


async def cancel_order(order_id: int, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Order:
    """
    Cancels an open order. Nothing has been deducted for an open order, so
    stock is left untouched.
    """
    async with in_transaction(connection_name) as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFound(order_id)

        updated = await (
            Order.filter(id=order_id, status=OrderStatus.OPEN)
            .using_db(conn)
            .update(status=OrderStatus.CANCELLED)
        )
        if not updated:
            raise OrderNotOpen(order_id, order.status.value)
        order.status = OrderStatus.CANCELLED

        await audit_service.record(
            conn, acting_user_id, AuditAction.CANCEL_ORDER, AuditModule.ORDERS,
            f"Cancelled order #{order_id}",
        )

    log.info("Order %s cancelled by user %s.", order_id, acting_user_id)
    return order


async def get_order_by_id(order_id: int, connection_name: str = DB_CONNECTION_NAME) -> Optional[Order]:
    """Fetches order details with items, including the product name."""
    # Pre-fetch related entities to minimize DB queries (N+1 avoidance)
    return await (
        Order.filter(id=order_id)
        .using_db(get_connection(connection_name))
        .prefetch_related('items', 'items__product')
        .first()
    )


async def list_orders(status: Optional[OrderStatus] = None, connection_name: str = DB_CONNECTION_NAME) -> List[Order]:
    query = Order.filter(status=status) if status else Order.all()
    return await query.using_db(get_connection(connection_name)).order_by("-created_at", "-id")
