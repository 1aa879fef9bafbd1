from datetime import date
from decimal import Decimal
from pydantic import BaseModel
from typing import List, Optional


class LogEntryResponse(BaseModel):
    id: int
    user_id: Optional[int]
    user_name: Optional[str] = None
    action: str
    module: str
    details: str
    created_at: str


class ReportSummary(BaseModel):
    total_revenue: Decimal
    total_orders: int
    average_order_value: Decimal


class TopProduct(BaseModel):
    product_id: int
    name: str
    total_sold: int
    revenue: Decimal


class DailyReport(BaseModel):
    day: date
    summary: ReportSummary
    top_products: List[TopProduct]
