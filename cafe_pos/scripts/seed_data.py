# scripts/seed_data.py
import asyncio
import logging
from decimal import Decimal
from tortoise import Tortoise
from cafe_pos.core.config import LOG_FORMAT
from cafe_pos.core.db import init_db
from cafe_pos.models.user import User, UserRole
from cafe_pos.models.catalog import Ingredient, Product, ProductIngredient

log = logging.getLogger("seed_data")

USERS = [
    ("Admin", UserRole.ADMIN),
    ("Employee 1", UserRole.EMPLOYEE),
    ("Employee 2", UserRole.EMPLOYEE),
    ("Employee 3", UserRole.EMPLOYEE),
]

# name -> (unit, stock, nominal)
INGREDIENTS = {
    "Coffee beans": ("g", "5000", "10000"),
    "Milk": ("ml", "20000", "20000"),
    "Sugar": ("g", "3000", "5000"),
    "Croissant dough": ("szt", "40", "60"),
}

# name -> (price, group, {ingredient: quantity_needed})
PRODUCTS = {
    "Espresso": ("8.00", "Coffee", {"Coffee beans": "18"}),
    "Cappuccino": ("12.00", "Coffee", {"Coffee beans": "18", "Milk": "150"}),
    "Latte": ("14.00", "Coffee", {"Coffee beans": "18", "Milk": "250", "Sugar": "5"}),
    "Croissant": ("9.50", "Bakery", {"Croissant dough": "1"}),
}


async def seed():
    for name, role in USERS:
        user, _ = await User.get_or_create(name=name, defaults={"role": role})
        log.info("User %s: %s", user.id, user.name)

    ingredients = {}
    for name, (unit, stock, nominal) in INGREDIENTS.items():
        ingredient, _ = await Ingredient.get_or_create(
            name=name,
            defaults={"unit": unit, "stock_quantity": Decimal(stock), "nominal_stock": Decimal(nominal)},
        )
        ingredients[name] = ingredient

    for name, (price, group, bom) in PRODUCTS.items():
        product, created = await Product.get_or_create(name=name, defaults={"price": Decimal(price), "group": group})
        if created:
            for ingredient_name, qty in bom.items():
                await ProductIngredient.create(
                    product=product,
                    ingredient=ingredients[ingredient_name],
                    quantity_needed=Decimal(qty),
                )
        log.info("Product %s: %s (%d ingredients)", product.id, product.name, len(bom))

    log.info("Catalog seeded.")


async def main():
    await init_db()
    await seed()
    await Tortoise.close_connections()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    asyncio.run(main())
