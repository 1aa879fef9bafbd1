from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
from cafe_pos.models.order import OrderStatus


class OrderLineRequest(BaseModel):
    """Schema for a single line in an order request."""
    product_id: int
    quantity: int = Field(..., ge=1)
    # Supplied by the till, so promotional or overridden prices are kept as-is
    unit_price: Decimal = Field(..., ge=0)


class OrderRequest(BaseModel):
    """Schema for the order creation request body."""
    items: List[OrderLineRequest]


class OrderUpdateRequest(BaseModel):
    """Schema for replacing the lines of an open order."""
    items: List[OrderLineRequest]
    total_price: Decimal = Field(..., ge=0)


class OrderSummaryResponse(BaseModel):
    """Response schema for a created or modified order."""
    order_id: int
    status: OrderStatus
    total_price: Decimal
    message: str


class OrderItemResponse(BaseModel):
    """Schema for an item inside the detailed order response."""
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    price_per_item: str  # Use string for Decimal type serialization


class OrderDetailResponse(BaseModel):
    """Schema for fetching detailed order information."""
    id: int
    user_id: int
    status: OrderStatus
    total_price: Decimal
    items: List[OrderItemResponse]
    created_at: str
