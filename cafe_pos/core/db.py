from tortoise import Tortoise, connections
from cafe_pos.core.config import DB_URL, DB_CONNECTION_NAME, TIMEZONE
import logging
from logging import INFO

# Set logging level for Tortoise ORM
logging.getLogger('tortoise').setLevel(INFO)
log = logging.getLogger(__name__)

# Define all models modules for the ORM
MODELS_MODULES = [
    "cafe_pos.models.user",
    "cafe_pos.models.catalog",
    "cafe_pos.models.order",
    "cafe_pos.models.shift",
    "cafe_pos.models.audit",
]


def tortoise_config(db_url: str = DB_URL, connection_name: str = DB_CONNECTION_NAME) -> dict:
    """Builds a Tortoise config dict that registers the models under a named connection."""
    return {
        "connections": {connection_name: db_url},
        "use_tz": True,
        "timezone": TIMEZONE,
        "apps": {
            "models": {
                "models": MODELS_MODULES,
                "default_connection": connection_name,
            }
        },
    }


async def init_db(db_url: str = DB_URL, connection_name: str = DB_CONNECTION_NAME, generate_schemas: bool = True):
    """Initializes the Tortoise ORM connection and generates schemas."""
    try:
        await Tortoise.init(config=tortoise_config(db_url, connection_name))
        if generate_schemas:
            # Generate the database schema (create tables)
            await Tortoise.generate_schemas()
        log.info("Database connection '%s' established.", connection_name)
    except Exception:
        log.critical("Could not connect to database for connection '%s'.", connection_name)
        # Re-raise to prevent the application from starting without a database
        raise


async def close_db():
    """Closes all database connections."""
    await Tortoise.close_connections()
    log.info("Database connections closed.")


def get_connection(connection_name: str = DB_CONNECTION_NAME):
    """Returns the client for a named connection, for reads outside a transaction."""
    return connections.get(connection_name)
