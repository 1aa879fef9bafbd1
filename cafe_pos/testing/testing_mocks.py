from unittest.mock import AsyncMock, MagicMock


class AsyncContextManagerMock:
    """Mocks 'async with in_transaction() as conn:' to bypass a real DB context."""
    async def __aenter__(self):
        # Returns a mock connection object
        return object()
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass


def create_mock_queryset(final_return_value, updated_rows=1):
    """
    Mock of a chained Tortoise query ending in `.first()` or `.update()`, e.g.
    `Order.filter(...).using_db(conn).select_for_update().first()`.
    Every chaining method returns the mock itself; `.first()` and `.update()`
    are awaitable, the latter returning `updated_rows`.
    """
    chain = MagicMock()
    chain.using_db.return_value = chain
    chain.select_for_update.return_value = chain
    chain.order_by.return_value = chain
    chain.first = AsyncMock(return_value=final_return_value)
    chain.update = AsyncMock(return_value=updated_rows)
    return chain
