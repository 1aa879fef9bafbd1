import logging
from typing import Any, List, Optional
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction
from cafe_pos.core.config import DB_CONNECTION_NAME, LOGS_PAGE_LIMIT
from cafe_pos.core.db import get_connection
from cafe_pos.models.audit import AuditLog
from cafe_pos.models.user import User

log = logging.getLogger(__name__)


class AuditAction:
    CREATE_ORDER = "CREATE_ORDER"
    UPDATE_ORDER = "UPDATE_ORDER"
    COMPLETE_ORDER = "COMPLETE_ORDER"
    CANCEL_ORDER = "CANCEL_ORDER"
    CREATE_PRODUCT = "CREATE_PRODUCT"
    UPDATE_PRODUCT = "UPDATE_PRODUCT"
    HIDE_PRODUCT = "HIDE_PRODUCT"
    CREATE_INGREDIENT = "CREATE_INGREDIENT"
    UPDATE_INGREDIENT = "UPDATE_INGREDIENT"
    DEACTIVATE_INGREDIENT = "DEACTIVATE_INGREDIENT"
    ADJUST_STOCK = "ADJUST_STOCK"
    CREATE_SHIFT = "CREATE_SHIFT"
    UPDATE_SHIFT = "UPDATE_SHIFT"
    DELETE_SHIFT = "DELETE_SHIFT"


class AuditModule:
    ORDERS = "Orders"
    MENU = "Menu"
    WAREHOUSE = "Warehouse"
    SCHEDULE = "Schedule"


async def record(
    conn: Any,
    acting_user_id: Optional[int],
    action: str,
    module: str,
    details: str,
) -> Optional[AuditLog]:
    """
    Appends an audit entry inside the caller's transaction.

    The write runs under a savepoint of `conn`: a failed insert rolls back
    to the savepoint only, so the caller's transaction stays usable and
    commits normally (Postgres would otherwise abort it).

    Never raises: a missing actor or a failed write is reported to the
    operational log and the business operation carries on.
    """
    if acting_user_id is None:
        log.warning("Audit entry %s/%s skipped: no acting user. Details: %s", module, action, details)
        return None

    try:
        async with in_transaction(conn.connection_name) as savepoint:
            if not await User.filter(id=acting_user_id).using_db(savepoint).exists():
                log.warning("Audit entry %s/%s skipped: unknown user %s. Details: %s", module, action, acting_user_id, details)
                return None

            return await AuditLog.create(
                user_id=acting_user_id,
                action=action,
                module=module,
                details=details,
                using_db=savepoint,
            )
    except BaseORMException:
        log.exception("Failed to write audit entry %s/%s for user %s", module, action, acting_user_id)
        return None


async def list_logs(
    limit: int = LOGS_PAGE_LIMIT,
    offset: int = 0,
    connection_name: str = DB_CONNECTION_NAME,
) -> List[AuditLog]:
    """Newest entries first, with the acting user prefetched for display."""
    return await (
        AuditLog.all()
        .using_db(get_connection(connection_name))
        .prefetch_related("user")
        .order_by("-created_at", "-id")
        .offset(offset)
        .limit(limit)
    )
