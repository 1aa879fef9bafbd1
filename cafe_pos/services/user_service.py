from typing import List
from cafe_pos.core.config import DB_CONNECTION_NAME
from cafe_pos.core.db import get_connection
from cafe_pos.models.user import User


async def list_users(include_inactive: bool = False, connection_name: str = DB_CONNECTION_NAME) -> List[User]:
    """Staff members for the schedule view, ordered by name."""
    query = User.all() if include_inactive else User.filter(is_active=True)
    return await query.using_db(get_connection(connection_name)).order_by("name", "id")
