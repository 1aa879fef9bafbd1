from enum import Enum
from tortoise import fields, models


class OrderStatus(str, Enum):
    OPEN = "open"            # Taken, lines still editable
    COMPLETED = "completed"  # Fulfilled, ingredients deducted (final)
    CANCELLED = "cancelled"  # Abandoned while open (final)


class Order(models.Model):
    id = fields.IntField(primary_key=True)
    user = fields.ForeignKeyField("models.User", related_name="orders", on_delete=fields.RESTRICT)
    status = fields.CharEnumField(OrderStatus, default=OrderStatus.OPEN)
    total_price = fields.DecimalField(max_digits=14, decimal_places=2, default=0)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "orders"
        indexes = [
            ("status",),                 # Status-based filtering
            ("user_id",),                # User order history
            ("created_at",),             # Time-based queries
            ("status", "created_at"),    # Composite: daily reports
        ]


class OrderItem(models.Model):
    id = fields.IntField(primary_key=True)
    order = fields.ForeignKeyField("models.Order", related_name="items", on_delete=fields.CASCADE)
    product = fields.ForeignKeyField("models.Product", related_name="order_items", on_delete=fields.RESTRICT)
    quantity = fields.IntField()
    # Snapshot taken when the order is written, independent of Product.price
    price_per_item = fields.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        table = "order_items"
        indexes = [
            ("order_id",),              # Order line items
            ("product_id",),            # Product popularity
        ]
