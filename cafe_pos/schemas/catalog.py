from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal


class BomLineRequest(BaseModel):
    ingredient_id: int
    quantity_needed: Decimal = Field(..., gt=0, description="Consumption per one unit of product sold.")


class ProductRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Name shown on the menu.")
    price: Decimal = Field(..., ge=0, description="Current selling price.")
    group: str = Field("", description="Menu category label.")
    ingredients: List[BomLineRequest] = Field(default_factory=list, description="Full bill of materials.")


class ProductResponse(BaseModel):
    id: int
    name: str
    price: Decimal
    group: str
    is_visible: bool


class BomLineResponse(BaseModel):
    ingredient_id: int
    quantity_needed: Decimal
    ingredient_name: Optional[str] = None
    unit: Optional[str] = None


class IngredientRequest(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = Field(..., min_length=1, description="Free-form unit, e.g. 'g', 'l', 'szt'.")
    stock_quantity: Decimal = Field(Decimal("0"), ge=0, description="Opening stock.")
    nominal_stock: Decimal = Field(..., ge=0, description="Reference level used for the status display.")


class IngredientUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = Field(None, min_length=1)
    nominal_stock: Optional[Decimal] = Field(None, ge=0)


class StockAdjustmentRequest(BaseModel):
    delta: Decimal = Field(..., description="Signed change applied to the current stock.")
    reason: str = Field("", description="Free text stored in the audit log.")


class IngredientResponse(BaseModel):
    id: int
    name: str
    unit: str
    stock_quantity: Decimal
    nominal_stock: Decimal
    is_active: bool
    status: str
