from tortoise import fields, models


class Ingredient(models.Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    unit = fields.CharField(max_length=32) # e.g. "g", "l", "szt"
    # Signed: overselling is allowed and shows up as negative stock
    stock_quantity = fields.DecimalField(max_digits=14, decimal_places=3, default=0)
    nominal_stock = fields.DecimalField(max_digits=14, decimal_places=3, default=0)
    is_active = fields.BooleanField(default=True)

    class Meta:
        table = "ingredients"
        indexes = [
            ("is_active",),
        ]


class Product(models.Model):
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=255)
    price = fields.DecimalField(max_digits=12, decimal_places=2)
    group = fields.CharField(max_length=128, default="")
    is_visible = fields.BooleanField(default=True)

    class Meta:
        table = "products"
        indexes = [
            ("is_visible",),
            ("group", "is_visible"),
        ]


class ProductIngredient(models.Model):
    """One bill-of-materials line: consumption of an ingredient per unit of product sold."""
    id = fields.IntField(primary_key=True)
    product = fields.ForeignKeyField("models.Product", related_name="bom_lines", on_delete=fields.CASCADE)
    ingredient = fields.ForeignKeyField("models.Ingredient", related_name="bom_lines", on_delete=fields.RESTRICT)
    quantity_needed = fields.DecimalField(max_digits=14, decimal_places=3)

    class Meta:
        table = "product_ingredients"
        unique_together = (("product", "ingredient"),)
