import pytest
from decimal import Decimal
from tortoise import Tortoise
from cafe_pos.core.db import tortoise_config
from cafe_pos.models.catalog import Ingredient, Product, ProductIngredient
from cafe_pos.models.user import User, UserRole

TEST_CONNECTION = "test"


@pytest.fixture
async def db():
    """Isolated in-memory SQLite database per test; yields the connection name services should use."""
    await Tortoise.init(config=tortoise_config("sqlite://:memory:", TEST_CONNECTION))
    await Tortoise.generate_schemas()
    yield TEST_CONNECTION
    await Tortoise.close_connections()


@pytest.fixture
async def cashier(db):
    return await User.create(name="Cashier", role=UserRole.EMPLOYEE)


@pytest.fixture
async def ingredients(db):
    """ing1 and ing2 with plenty of stock."""
    ing1 = await Ingredient.create(name="Coffee beans", unit="g", stock_quantity=Decimal("100"), nominal_stock=Decimal("100"))
    ing2 = await Ingredient.create(name="Milk", unit="ml", stock_quantity=Decimal("50"), nominal_stock=Decimal("50"))
    return ing1, ing2


@pytest.fixture
async def products(ingredients):
    """productA uses {ing1: 5}; productB uses {ing1: 2, ing2: 1}."""
    ing1, ing2 = ingredients
    product_a = await Product.create(name="Espresso", price=Decimal("8.00"), group="Coffee")
    product_b = await Product.create(name="Latte", price=Decimal("14.00"), group="Coffee")
    await ProductIngredient.create(product=product_a, ingredient=ing1, quantity_needed=Decimal("5"))
    await ProductIngredient.create(product=product_b, ingredient=ing1, quantity_needed=Decimal("2"))
    await ProductIngredient.create(product=product_b, ingredient=ing2, quantity_needed=Decimal("1"))
    return product_a, product_b
