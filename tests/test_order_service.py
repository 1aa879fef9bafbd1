import asyncio
import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from tortoise.exceptions import OperationalError
from cafe_pos.core.errors import (
    CompletionFailed,
    EmptyOrder,
    IngredientNotFound,
    OrderAlreadyCompleted,
    OrderNotFound,
    OrderNotFoundOrEmpty,
    OrderNotOpen,
    ProductNotFound,
)
from cafe_pos.models.audit import AuditLog
from cafe_pos.models.catalog import Ingredient
from cafe_pos.models.order import Order, OrderItem, OrderStatus
from cafe_pos.schemas.order import OrderLineRequest
from cafe_pos.services.order_service import (
    cancel_order,
    complete_order,
    create_order,
    update_order,
)
from cafe_pos.testing.testing_mocks import AsyncContextManagerMock, create_mock_queryset


def line(product, quantity, unit_price=None):
    return OrderLineRequest(
        product_id=product.id,
        quantity=quantity,
        unit_price=unit_price if unit_price is not None else product.price,
    )


async def stock_of(ingredient):
    return (await Ingredient.get(id=ingredient.id)).stock_quantity


# --- create / update ---

@pytest.mark.asyncio
async def test_create_order_persists_lines_with_caller_prices(db, cashier, products):
    product_a, product_b = products
    # Promotional price on the latte is kept as supplied
    order = await create_order(
        cashier.id,
        [line(product_a, 2), line(product_b, 1, Decimal("10.00"))],
        connection_name=db,
    )

    assert order.status == OrderStatus.OPEN
    assert order.total_price == Decimal("26.00")
    items = await OrderItem.filter(order_id=order.id).order_by("id")
    assert [(i.product_id, i.quantity, i.price_per_item) for i in items] == [
        (product_a.id, 2, Decimal("8.00")),
        (product_b.id, 1, Decimal("10.00")),
    ]
    assert await AuditLog.filter(action="CREATE_ORDER", user_id=cashier.id).count() == 1


@pytest.mark.asyncio
async def test_create_order_rejects_empty_order(db, cashier):
    with pytest.raises(EmptyOrder):
        await create_order(cashier.id, [], connection_name=db)

    assert await Order.all().count() == 0


@pytest.mark.asyncio
async def test_create_order_with_unknown_product_writes_nothing(db, cashier, products):
    product_a, _ = products
    lines = [line(product_a, 1), OrderLineRequest(product_id=9999, quantity=1, unit_price=Decimal("1"))]

    with pytest.raises(ProductNotFound):
        await create_order(cashier.id, lines, connection_name=db)

    assert await Order.all().count() == 0
    assert await OrderItem.all().count() == 0


@pytest.mark.asyncio
async def test_update_order_replaces_all_lines(db, cashier, products):
    product_a, product_b = products
    order = await create_order(cashier.id, [line(product_a, 1), line(product_b, 1)], connection_name=db)

    updated = await update_order(order.id, [line(product_b, 3)], Decimal("40.00"), cashier.id, connection_name=db)

    assert updated.total_price == Decimal("40.00")
    items = await OrderItem.filter(order_id=order.id)
    assert [(i.product_id, i.quantity) for i in items] == [(product_b.id, 3)]


@pytest.mark.asyncio
async def test_update_order_rejected_once_completed(db, cashier, products):
    product_a, product_b = products
    order = await create_order(cashier.id, [line(product_a, 1)], connection_name=db)
    await complete_order(order.id, cashier.id, connection_name=db)

    with pytest.raises(OrderNotOpen):
        await update_order(order.id, [line(product_b, 2)], Decimal("28.00"), cashier.id, connection_name=db)

    items = await OrderItem.filter(order_id=order.id)
    assert [(i.product_id, i.quantity) for i in items] == [(product_a.id, 1)]


@pytest.mark.asyncio
async def test_update_missing_order(db, cashier, products):
    product_a, _ = products
    with pytest.raises(OrderNotFound):
        await update_order(12345, [line(product_a, 1)], Decimal("8.00"), cashier.id, connection_name=db)


# --- complete ---

@pytest.mark.asyncio
async def test_complete_order_deducts_bill_of_materials(db, cashier, ingredients, products):
    ing1, ing2 = ingredients
    product_a, product_b = products
    order = await create_order(cashier.id, [line(product_a, 2), line(product_b, 3)], connection_name=db)

    completed = await complete_order(order.id, cashier.id, connection_name=db)

    assert completed.status == OrderStatus.COMPLETED
    assert (await Order.get(id=order.id)).status == OrderStatus.COMPLETED
    # 2*5 + 3*2 = 16 and 3*1 = 3
    assert await stock_of(ing1) == Decimal("84")
    assert await stock_of(ing2) == Decimal("47")
    entry = await AuditLog.get(action="COMPLETE_ORDER")
    assert entry.module == "Orders"
    assert f"#{order.id}" in entry.details


@pytest.mark.asyncio
async def test_complete_order_twice_is_rejected_without_touching_stock(db, cashier, ingredients, products):
    ing1, ing2 = ingredients
    product_a, _ = products
    order = await create_order(cashier.id, [line(product_a, 1)], connection_name=db)
    await complete_order(order.id, cashier.id, connection_name=db)
    after_first = (await stock_of(ing1), await stock_of(ing2))

    with pytest.raises(OrderAlreadyCompleted):
        await complete_order(order.id, cashier.id, connection_name=db)

    assert (await stock_of(ing1), await stock_of(ing2)) == after_first
    assert await AuditLog.filter(action="COMPLETE_ORDER").count() == 1


@pytest.mark.asyncio
async def test_complete_order_allows_negative_stock(db, cashier, ingredients, products):
    ing1, _ = ingredients
    product_a, _ = products
    order = await create_order(cashier.id, [line(product_a, 30)], connection_name=db)

    await complete_order(order.id, cashier.id, connection_name=db)

    assert await stock_of(ing1) == Decimal("-50")


@pytest.mark.asyncio
async def test_complete_order_is_atomic_when_an_ingredient_is_missing(db, cashier, ingredients, products):
    ing1, ing2 = ingredients
    _, product_b = products
    order = await create_order(cashier.id, [line(product_b, 2)], connection_name=db)
    # ing1 is deducted first, then ing2 fails
    await Ingredient.filter(id=ing2.id).update(is_active=False)

    with pytest.raises(IngredientNotFound) as excinfo:
        await complete_order(order.id, cashier.id, connection_name=db)

    assert excinfo.value.ingredient_id == ing2.id
    assert await stock_of(ing1) == Decimal("100")
    assert await stock_of(ing2) == Decimal("50")
    assert (await Order.get(id=order.id)).status == OrderStatus.OPEN
    assert await AuditLog.filter(action="COMPLETE_ORDER").count() == 0


@pytest.mark.asyncio
async def test_complete_missing_order(db, cashier):
    with pytest.raises(OrderNotFoundOrEmpty):
        await complete_order(4242, cashier.id, connection_name=db)


@pytest.mark.asyncio
async def test_complete_order_without_lines(db, cashier):
    order = await Order.create(user=cashier, status=OrderStatus.OPEN, total_price=Decimal("0"))

    with pytest.raises(OrderNotFoundOrEmpty):
        await complete_order(order.id, cashier.id, connection_name=db)

    assert (await Order.get(id=order.id)).status == OrderStatus.OPEN


@pytest.mark.asyncio
async def test_complete_order_survives_audit_write_failure(db, cashier, ingredients, products):
    ing1, _ = ingredients
    product_a, _ = products
    order = await create_order(cashier.id, [line(product_a, 1)], connection_name=db)

    with patch("cafe_pos.services.audit_service.AuditLog.create", new_callable=AsyncMock) as mock_create:
        mock_create.side_effect = OperationalError("logs table unavailable")
        completed = await complete_order(order.id, cashier.id, connection_name=db)

    assert completed.status == OrderStatus.COMPLETED
    assert (await Order.get(id=order.id)).status == OrderStatus.COMPLETED
    assert await stock_of(ing1) == Decimal("95")


@pytest.mark.asyncio
async def test_unexpected_failure_rolls_back_and_reports_completion_failed(db, cashier, ingredients, products):
    ing1, _ = ingredients
    product_a, _ = products
    order = await create_order(cashier.id, [line(product_a, 1)], connection_name=db)

    with patch("cafe_pos.services.order_service.audit_service.record", new_callable=AsyncMock) as mock_record:
        mock_record.side_effect = RuntimeError("connection reset")
        with pytest.raises(CompletionFailed):
            await complete_order(order.id, cashier.id, connection_name=db)

    assert await stock_of(ing1) == Decimal("100")
    assert (await Order.get(id=order.id)).status == OrderStatus.OPEN


# --- concurrency ---

@pytest.mark.asyncio
async def test_concurrent_completions_of_same_order_deduct_once(db, cashier, ingredients, products):
    ing1, _ = ingredients
    product_a, _ = products
    order = await create_order(cashier.id, [line(product_a, 1)], connection_name=db)

    results = await asyncio.gather(
        complete_order(order.id, cashier.id, connection_name=db),
        complete_order(order.id, cashier.id, connection_name=db),
        return_exceptions=True,
    )

    assert sorted(type(r).__name__ for r in results) == ["Order", "OrderAlreadyCompleted"]
    assert await stock_of(ing1) == Decimal("95")
    assert await AuditLog.filter(action="COMPLETE_ORDER").count() == 1


@pytest.mark.asyncio
async def test_concurrent_orders_sharing_an_ingredient_both_deduct(db, cashier, ingredients, products):
    ing1, ing2 = ingredients
    product_a, product_b = products
    first = await create_order(cashier.id, [line(product_a, 2)], connection_name=db)
    second = await create_order(cashier.id, [line(product_b, 3)], connection_name=db)

    completed = await asyncio.gather(
        complete_order(first.id, cashier.id, connection_name=db),
        complete_order(second.id, cashier.id, connection_name=db),
    )

    assert [o.status for o in completed] == [OrderStatus.COMPLETED, OrderStatus.COMPLETED]
    # 2*5 + 3*2 = 16 and 3*1 = 3, no deduction lost
    assert await stock_of(ing1) == Decimal("84")
    assert await stock_of(ing2) == Decimal("47")


# --- cancel ---

@pytest.mark.asyncio
async def test_cancelled_order_cannot_be_completed(db, cashier, ingredients, products):
    ing1, _ = ingredients
    product_a, _ = products
    order = await create_order(cashier.id, [line(product_a, 1)], connection_name=db)

    cancelled = await cancel_order(order.id, cashier.id, connection_name=db)
    assert cancelled.status == OrderStatus.CANCELLED

    with pytest.raises(OrderAlreadyCompleted):
        await complete_order(order.id, cashier.id, connection_name=db)
    with pytest.raises(OrderNotOpen):
        await cancel_order(order.id, cashier.id, connection_name=db)
    assert await stock_of(ing1) == Decimal("100")


# --- mocked storage ---

@pytest.mark.asyncio
@patch('cafe_pos.services.order_service.in_transaction', new_callable=MagicMock)
@patch('cafe_pos.services.order_service.adjust_stock', new_callable=AsyncMock)
async def test_rejection_of_final_state_before_any_write(mock_adjust_stock, mock_in_transaction):
    """A completed order is rejected on the status check; the ledger is never touched."""
    mock_order = MagicMock()
    mock_order.id = 7
    mock_order.status = OrderStatus.COMPLETED

    chain = create_mock_queryset(mock_order)
    mock_in_transaction.return_value = AsyncContextManagerMock()

    with patch.object(Order, 'filter', MagicMock(return_value=chain)):
        with pytest.raises(OrderAlreadyCompleted) as excinfo:
            await complete_order(mock_order.id, acting_user_id=1)

    assert "completed" in str(excinfo.value)
    mock_adjust_stock.assert_not_called()


@pytest.mark.asyncio
@patch('cafe_pos.services.order_service.audit_service.record', new_callable=AsyncMock)
@patch('cafe_pos.services.order_service.compute_consumption', new_callable=AsyncMock)
@patch('cafe_pos.services.order_service.in_transaction', new_callable=MagicMock)
@patch('cafe_pos.services.order_service.adjust_stock', new_callable=AsyncMock)
async def test_status_flip_matching_no_row_is_rejected(mock_adjust_stock, mock_in_transaction, mock_consumption, mock_record):
    """The order was open when read, but another completion flipped it first: the deductions are abandoned."""
    mock_order = MagicMock()
    mock_order.id = 7
    mock_order.status = OrderStatus.OPEN
    mock_consumption.return_value = {1: Decimal("5")}
    mock_in_transaction.return_value = AsyncContextManagerMock()

    lock_query = create_mock_queryset(mock_order)
    status_flip = create_mock_queryset(None, updated_rows=0)
    items_query = MagicMock()
    items_query.using_db.return_value.order_by = AsyncMock(return_value=[MagicMock()])

    with patch.object(Order, 'filter', MagicMock(side_effect=[lock_query, status_flip])):
        with patch.object(OrderItem, 'filter', MagicMock(return_value=items_query)):
            with pytest.raises(OrderAlreadyCompleted):
                await complete_order(mock_order.id, acting_user_id=1)

    mock_adjust_stock.assert_awaited_once()
    status_flip.update.assert_awaited_once_with(status=OrderStatus.COMPLETED)
    mock_record.assert_not_called()
