from fastapi import Header
from cafe_pos.core.config import DB_CONNECTION_NAME


def get_connection_name() -> str:
    """Named Tortoise connection handed to every service call. Tests override this dependency."""
    return DB_CONNECTION_NAME


def get_acting_user_id(x_user_id: int = Header(..., description="Id of the logged-in user, set by the auth gateway.")) -> int:
    # PIN verification happens upstream; the header is trusted as-is
    return x_user_id
