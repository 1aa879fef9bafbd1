from decimal import Decimal
from fastapi import APIRouter, Depends, status
from cafe_pos.api.deps import get_acting_user_id, get_connection_name
from cafe_pos.models.catalog import Ingredient, Product
from cafe_pos.schemas.catalog import (
    BomLineResponse,
    IngredientRequest,
    IngredientResponse,
    IngredientUpdateRequest,
    ProductRequest,
    ProductResponse,
    StockAdjustmentRequest,
)
from cafe_pos.schemas.response import SuccessResponse
from cafe_pos.services import catalog_service
from cafe_pos.services.stock_service import stock_status

menu_router = APIRouter()
ingredients_router = APIRouter()


def _product(product: Product) -> dict:
    return ProductResponse(
        id=product.id,
        name=product.name,
        price=product.price,
        group=product.group,
        is_visible=product.is_visible,
    ).model_dump()


def _ingredient(ingredient: Ingredient) -> dict:
    return IngredientResponse(
        id=ingredient.id,
        name=ingredient.name,
        unit=ingredient.unit,
        stock_quantity=ingredient.stock_quantity,
        nominal_stock=ingredient.nominal_stock,
        is_active=ingredient.is_active,
        status=stock_status(Decimal(ingredient.stock_quantity), Decimal(ingredient.nominal_stock)),
    ).model_dump()


# --- Menu ---

@menu_router.get("", response_model=SuccessResponse)
async def list_products_endpoint(include_hidden: bool = False, connection_name: str = Depends(get_connection_name)):
    products = await catalog_service.list_products(include_hidden, connection_name=connection_name)
    return SuccessResponse(data=[_product(p) for p in products])


@menu_router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_product_endpoint(
    payload: ProductRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    product = await catalog_service.create_product(payload, user_id, connection_name=connection_name)
    return SuccessResponse(data=_product(product))


@menu_router.put("/{product_id}", response_model=SuccessResponse)
async def update_product_endpoint(
    product_id: int,
    payload: ProductRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    """Updates the product and replaces its whole bill of materials."""
    product = await catalog_service.update_product(product_id, payload, user_id, connection_name=connection_name)
    return SuccessResponse(data=_product(product))


@menu_router.delete("/{product_id}", response_model=SuccessResponse)
async def hide_product_endpoint(
    product_id: int,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    product = await catalog_service.hide_product(product_id, user_id, connection_name=connection_name)
    return SuccessResponse(data=_product(product))


@menu_router.get("/{product_id}/ingredients", response_model=SuccessResponse)
async def get_product_bom_endpoint(product_id: int, connection_name: str = Depends(get_connection_name)):
    rows = await catalog_service.get_product_bom(product_id, connection_name=connection_name)
    data = [
        BomLineResponse(
            ingredient_id=row.ingredient_id,
            quantity_needed=row.quantity_needed,
            ingredient_name=row.ingredient.name,
            unit=row.ingredient.unit,
        ).model_dump()
        for row in rows
    ]
    return SuccessResponse(data=data)


# --- Warehouse ---

@ingredients_router.get("", response_model=SuccessResponse)
async def list_ingredients_endpoint(include_inactive: bool = False, connection_name: str = Depends(get_connection_name)):
    ingredients = await catalog_service.list_ingredients(include_inactive, connection_name=connection_name)
    return SuccessResponse(data=[_ingredient(i) for i in ingredients])


@ingredients_router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_ingredient_endpoint(
    payload: IngredientRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    ingredient = await catalog_service.create_ingredient(payload, user_id, connection_name=connection_name)
    return SuccessResponse(data=_ingredient(ingredient))


@ingredients_router.put("/{ingredient_id}", response_model=SuccessResponse)
async def update_ingredient_endpoint(
    ingredient_id: int,
    payload: IngredientUpdateRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    ingredient = await catalog_service.update_ingredient(ingredient_id, payload, user_id, connection_name=connection_name)
    return SuccessResponse(data=_ingredient(ingredient))


@ingredients_router.delete("/{ingredient_id}", response_model=SuccessResponse)
async def deactivate_ingredient_endpoint(
    ingredient_id: int,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    ingredient = await catalog_service.deactivate_ingredient(ingredient_id, user_id, connection_name=connection_name)
    return SuccessResponse(data=_ingredient(ingredient))


@ingredients_router.post("/{ingredient_id}/adjust", response_model=SuccessResponse)
async def adjust_stock_endpoint(
    ingredient_id: int,
    payload: StockAdjustmentRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    """Manual stock correction: deliveries, stock-takes, waste."""
    new_quantity = await catalog_service.adjust_ingredient_stock(
        ingredient_id, payload.delta, payload.reason, user_id, connection_name=connection_name
    )
    return SuccessResponse(data={"ingredient_id": ingredient_id, "stock_quantity": new_quantity})
