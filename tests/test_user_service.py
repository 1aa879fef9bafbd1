import pytest
from cafe_pos.models.user import User, UserRole
from cafe_pos.services.user_service import list_users


@pytest.mark.asyncio
async def test_list_users_skips_inactive_staff(db, cashier):
    admin = await User.create(name="Admin", role=UserRole.ADMIN)
    await User.create(name="Former barista", is_active=False)

    users = await list_users(connection_name=db)
    assert [u.id for u in users] == [admin.id, cashier.id]

    everyone = await list_users(include_inactive=True, connection_name=db)
    assert len(everyone) == 3
