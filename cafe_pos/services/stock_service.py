import logging
from decimal import Decimal
from typing import Any, Optional
from cafe_pos.core.config import STOCK_CRITICAL_PERCENT, STOCK_LOW_PERCENT
from cafe_pos.core.errors import IngredientNotFound
from cafe_pos.models.catalog import Ingredient

log = logging.getLogger(__name__)


async def adjust_stock(conn: Any, ingredient_id: int, delta: Decimal) -> Decimal:
    """
    Applies a signed change to an ingredient's on-hand quantity and returns
    the new quantity. This is the only writer of `stock_quantity`.

    Must be called inside the caller's transaction (`conn`); it never commits.
    There is no lower bound: the result may be negative.
    """
    # CRITICAL: Lock the row so concurrent fulfillments serialize their
    # read-modify-write on the same ingredient instead of losing an update.
    ingredient: Optional[Ingredient] = await (
        Ingredient.filter(id=ingredient_id, is_active=True)
        .using_db(conn)
        .select_for_update()
        .first()
    )
    if not ingredient:
        raise IngredientNotFound(ingredient_id)

    ingredient.stock_quantity = ingredient.stock_quantity + delta
    await ingredient.save(update_fields=["stock_quantity"], using_db=conn)

    if ingredient.stock_quantity < 0:
        log.info("Ingredient %s (%s) is now below zero: %s", ingredient.id, ingredient.name, ingredient.stock_quantity)
    return ingredient.stock_quantity


def stock_status(current: Decimal, nominal: Decimal) -> str:
    """Display status of an ingredient: 'OK', 'LOW' or 'CRITICAL' relative to its nominal stock."""
    if nominal <= 0:
        return "CRITICAL" if current <= 0 else "OK"

    percentage = Decimal(current) / Decimal(nominal) * 100
    if percentage < STOCK_CRITICAL_PERCENT:
        return "CRITICAL"
    if percentage < STOCK_LOW_PERCENT:
        return "LOW"
    return "OK"
