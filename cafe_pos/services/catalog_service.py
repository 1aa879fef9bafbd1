import logging
from decimal import Decimal
from tortoise.transactions import in_transaction
from typing import Any, Dict, List
from cafe_pos.core.config import DB_CONNECTION_NAME
from cafe_pos.core.db import get_connection
from cafe_pos.core.errors import IngredientNotFound, InvalidBillOfMaterials, ProductNotFound
from cafe_pos.models.catalog import Ingredient, Product, ProductIngredient
from cafe_pos.schemas.catalog import (
    BomLineRequest,
    IngredientRequest,
    IngredientUpdateRequest,
    ProductRequest,
)
from cafe_pos.services import audit_service
from cafe_pos.services.audit_service import AuditAction, AuditModule
from cafe_pos.services.stock_service import adjust_stock

log = logging.getLogger(__name__)


# --- Bill of materials ---

async def replace_product_bom(conn: Any, product_id: int, lines: List[BomLineRequest]) -> List[ProductIngredient]:
    """
    Replaces the full bill of materials of a product: delete all rows, insert
    the new set. Runs in the caller's transaction so a validation failure
    leaves both the product fields and the old BOM untouched.
    """
    ingredient_ids = [line.ingredient_id for line in lines]
    if len(set(ingredient_ids)) != len(ingredient_ids):
        raise InvalidBillOfMaterials("Each ingredient may appear only once in a bill of materials.")
    for line in lines:
        if line.quantity_needed <= 0:
            raise InvalidBillOfMaterials(f"Quantity for ingredient {line.ingredient_id} must be greater than zero.")

    if ingredient_ids:
        found = set(await Ingredient.filter(id__in=ingredient_ids, is_active=True).using_db(conn).values_list("id", flat=True))
        missing = [iid for iid in ingredient_ids if iid not in found]
        if missing:
            raise IngredientNotFound(missing[0])

    await ProductIngredient.filter(product_id=product_id).using_db(conn).delete()

    rows = []
    for line in lines:
        rows.append(await ProductIngredient.create(
            product_id=product_id,
            ingredient_id=line.ingredient_id,
            quantity_needed=line.quantity_needed,
            using_db=conn,
        ))
    return rows


async def get_product_bom(product_id: int, connection_name: str = DB_CONNECTION_NAME) -> List[ProductIngredient]:
    """BOM rows of a product with their ingredient prefetched."""
    conn = get_connection(connection_name)
    if not await Product.filter(id=product_id).using_db(conn).exists():
        raise ProductNotFound(product_id)
    return await (
        ProductIngredient.filter(product_id=product_id)
        .using_db(conn)
        .prefetch_related("ingredient")
        .order_by("id")
    )


def describe_product_changes(
    product: Product,
    data: ProductRequest,
    old_bom: Dict[int, Decimal],
    new_bom: Dict[int, Decimal],
) -> List[str]:
    """Human-readable list of the fields an update actually changes."""
    changes = []
    if product.name != data.name:
        changes.append(f"name: '{product.name}' -> '{data.name}'")
    if Decimal(product.price) != data.price:
        changes.append(f"price: {product.price} -> {data.price}")
    if product.group != data.group:
        changes.append(f"group: '{product.group}' -> '{data.group}'")
    if old_bom != new_bom:
        changes.append(f"ingredients: {len(old_bom)} -> {len(new_bom)} items")
    return changes


# --- Products ---

async def create_product(data: ProductRequest, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Product:
    async with in_transaction(connection_name) as conn:
        product = await Product.create(
            name=data.name,
            price=data.price,
            group=data.group,
            is_visible=True,
            using_db=conn,
        )
        await replace_product_bom(conn, product.id, data.ingredients)
        await audit_service.record(
            conn, acting_user_id, AuditAction.CREATE_PRODUCT, AuditModule.MENU,
            f"Created product '{product.name}' (price {data.price}, {len(data.ingredients)} ingredients)",
        )

    log.info("Product %s '%s' created by user %s.", product.id, product.name, acting_user_id)
    return product


async def update_product(
    product_id: int,
    data: ProductRequest,
    acting_user_id: int,
    connection_name: str = DB_CONNECTION_NAME,
) -> Product:
    """Updates product fields and replaces its BOM in one transaction."""
    async with in_transaction(connection_name) as conn:
        product = await Product.filter(id=product_id).using_db(conn).select_for_update().first()
        if not product:
            raise ProductNotFound(product_id)

        old_rows = await ProductIngredient.filter(product_id=product_id).using_db(conn)
        old_bom = {row.ingredient_id: row.quantity_needed for row in old_rows}
        new_bom = {line.ingredient_id: line.quantity_needed for line in data.ingredients}
        changes = describe_product_changes(product, data, old_bom, new_bom)

        product.name = data.name
        product.price = data.price
        product.group = data.group
        await product.save(update_fields=["name", "price", "group"], using_db=conn)
        await replace_product_bom(conn, product_id, data.ingredients)

        summary = ", ".join(changes) if changes else "no changes"
        await audit_service.record(
            conn, acting_user_id, AuditAction.UPDATE_PRODUCT, AuditModule.MENU,
            f"Updated product '{product.name}' (changes: {summary})",
        )

    log.info("Product %s updated by user %s.", product_id, acting_user_id)
    return product


async def hide_product(product_id: int, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Product:
    """Soft delete: the product leaves the menu but stays referenced by past orders."""
    async with in_transaction(connection_name) as conn:
        product = await Product.filter(id=product_id).using_db(conn).select_for_update().first()
        if not product:
            raise ProductNotFound(product_id)

        product.is_visible = False
        await product.save(update_fields=["is_visible"], using_db=conn)
        await audit_service.record(
            conn, acting_user_id, AuditAction.HIDE_PRODUCT, AuditModule.MENU,
            f"Removed product '{product.name}' from the menu",
        )
    return product


async def list_products(include_hidden: bool = False, connection_name: str = DB_CONNECTION_NAME) -> List[Product]:
    query = Product.all() if include_hidden else Product.filter(is_visible=True)
    return await query.using_db(get_connection(connection_name)).order_by("group", "name")


# --- Ingredients (warehouse) ---

async def create_ingredient(data: IngredientRequest, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Ingredient:
    async with in_transaction(connection_name) as conn:
        ingredient = await Ingredient.create(
            name=data.name,
            unit=data.unit,
            stock_quantity=data.stock_quantity,
            nominal_stock=data.nominal_stock,
            is_active=True,
            using_db=conn,
        )
        await audit_service.record(
            conn, acting_user_id, AuditAction.CREATE_INGREDIENT, AuditModule.WAREHOUSE,
            f"Added ingredient '{ingredient.name}' ({data.stock_quantity} {ingredient.unit})",
        )
    return ingredient


async def update_ingredient(
    ingredient_id: int,
    data: IngredientUpdateRequest,
    acting_user_id: int,
    connection_name: str = DB_CONNECTION_NAME,
) -> Ingredient:
    """Edits descriptive fields. Stock quantity is corrected only through `adjust_ingredient_stock`."""
    async with in_transaction(connection_name) as conn:
        ingredient = await Ingredient.filter(id=ingredient_id, is_active=True).using_db(conn).select_for_update().first()
        if not ingredient:
            raise IngredientNotFound(ingredient_id)

        changes = data.model_dump(exclude_none=True)
        for field_name, value in changes.items():
            setattr(ingredient, field_name, value)
        if changes:
            await ingredient.save(update_fields=list(changes), using_db=conn)

        await audit_service.record(
            conn, acting_user_id, AuditAction.UPDATE_INGREDIENT, AuditModule.WAREHOUSE,
            f"Updated ingredient '{ingredient.name}' ({', '.join(changes) or 'no changes'})",
        )
    return ingredient


async def deactivate_ingredient(ingredient_id: int, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Ingredient:
    async with in_transaction(connection_name) as conn:
        ingredient = await Ingredient.filter(id=ingredient_id, is_active=True).using_db(conn).select_for_update().first()
        if not ingredient:
            raise IngredientNotFound(ingredient_id)

        ingredient.is_active = False
        await ingredient.save(update_fields=["is_active"], using_db=conn)
        await audit_service.record(
            conn, acting_user_id, AuditAction.DEACTIVATE_INGREDIENT, AuditModule.WAREHOUSE,
            f"Deactivated ingredient '{ingredient.name}'",
        )
    return ingredient


async def adjust_ingredient_stock(
    ingredient_id: int,
    delta: Decimal,
    reason: str,
    acting_user_id: int,
    connection_name: str = DB_CONNECTION_NAME,
) -> Decimal:
    """Manual stock correction (delivery, stock-take, waste). Returns the new quantity."""
    async with in_transaction(connection_name) as conn:
        new_quantity = await adjust_stock(conn, ingredient_id, delta)
        details = f"Stock of ingredient {ingredient_id} changed by {delta}, now {new_quantity}"
        if reason:
            details = f"{details} ({reason})"
        await audit_service.record(conn, acting_user_id, AuditAction.ADJUST_STOCK, AuditModule.WAREHOUSE, details)
    return new_quantity


async def list_ingredients(include_inactive: bool = False, connection_name: str = DB_CONNECTION_NAME) -> List[Ingredient]:
    query = Ingredient.all() if include_inactive else Ingredient.filter(is_active=True)
    return await query.using_db(get_connection(connection_name)).order_by("name")
