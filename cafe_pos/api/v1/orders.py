from fastapi import APIRouter, Depends, HTTPException, Query, status
from cafe_pos.api.deps import get_acting_user_id, get_connection_name
from cafe_pos.schemas.response import SuccessResponse
from cafe_pos.services.order_service import (
    cancel_order,
    complete_order,
    create_order,
    get_order_by_id,
    list_orders,
    update_order,
)
from cafe_pos.models.order import Order, OrderStatus
from cafe_pos.schemas.order import (
    OrderDetailResponse,
    OrderItemResponse,
    OrderRequest,
    OrderSummaryResponse,
    OrderUpdateRequest,
)
from typing import Optional

router = APIRouter()


def _summary(order: Order, message: str) -> dict:
    return OrderSummaryResponse(
        order_id=order.id,
        status=order.status,
        total_price=order.total_price,
        message=message,
    ).model_dump()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(
    request_data: OrderRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    """Takes a new order. Domain errors (empty order, unknown product) are mapped by the exception handlers."""
    order = await create_order(user_id, request_data.items, connection_name=connection_name)
    return SuccessResponse(data=_summary(order, "Order created."))


@router.get("", response_model=SuccessResponse)
async def list_orders_endpoint(
    order_status: Optional[OrderStatus] = Query(None, alias="status"),
    connection_name: str = Depends(get_connection_name),
):
    orders = await list_orders(order_status, connection_name=connection_name)
    data = [
        {
            "id": o.id,
            "user_id": o.user_id,
            "status": o.status,
            "total_price": o.total_price,
            "created_at": str(o.created_at),
        }
        for o in orders
    ]
    return SuccessResponse(data=data)


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: int, connection_name: str = Depends(get_connection_name)):
    """Fetches details for a specific order."""
    order = await get_order_by_id(order_id, connection_name=connection_name)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    items = [
        OrderItemResponse(
            product_id=i.product_id,
            product_name=i.product.name,
            quantity=i.quantity,
            price_per_item=str(i.price_per_item),
        )
        for i in order.items
    ]
    data = OrderDetailResponse(
        id=order.id,
        user_id=order.user_id,
        status=order.status,
        total_price=order.total_price,
        items=items,
        created_at=str(order.created_at),
    ).model_dump()
    return SuccessResponse(data=data)


@router.put("/{order_id}", response_model=SuccessResponse)
async def update_order_endpoint(
    order_id: int,
    payload: OrderUpdateRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    """Replaces the lines of an open order."""
    order = await update_order(order_id, payload.items, payload.total_price, user_id, connection_name=connection_name)
    return SuccessResponse(data=_summary(order, "Order updated."))


@router.post("/{order_id}/complete", response_model=SuccessResponse)
async def complete_order_endpoint(
    order_id: int,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    """Fulfills the order and deducts its ingredients from stock."""
    order = await complete_order(order_id, user_id, connection_name=connection_name)
    return SuccessResponse(data=_summary(order, "Order completed. Ingredients deducted from stock."))


@router.post("/{order_id}/cancel", response_model=SuccessResponse)
async def cancel_order_endpoint(
    order_id: int,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    order = await cancel_order(order_id, user_id, connection_name=connection_name)
    return SuccessResponse(data=_summary(order, "Order cancelled."))
