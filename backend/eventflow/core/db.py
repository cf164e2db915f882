# eventflow/core/db.py
"""
Database configuration and initialization module.
Handles Tortoise ORM setup, database connection, and migration configuration.
"""
from tortoise import Tortoise, connections

from eventflow.config import settings

# Database connection URL (PostgreSQL in deployment, SQLite in tests)
DB_URL = settings.database_url

# Tortoise ORM configuration dictionary
# This configuration is also used by Aerich for database migrations
TORTOISE_ORM = {
    "connections": {"default": DB_URL},
    "apps": {
        "models": {
            "models": [
                "eventflow.models.user",          # User model
                "eventflow.models.event",         # Audit event model
                "eventflow.models.notification",  # Notification inbox model
                "aerich.models",                  # Required: Let Aerich manage migration tables
            ],
            "default_connection": "default",
        },
    },
    # Store and compare timestamps as aware UTC datetimes
    "use_tz": True,
    "timezone": "UTC",
}


async def init_db():
    """
    Initialize Tortoise ORM database connection.

    This function should be called during application startup to establish
    the database connection and register all models.

    Note: Auto-generating schemas is disabled for production safety.
    Use Aerich migrations for schema management instead.
    """
    await Tortoise.init(config=TORTOISE_ORM)


async def ping_db() -> None:
    """
    Run a trivial query on the default connection.

    Raises whatever the driver raises when the database is unreachable.
    """
    await connections.get("default").execute_query("SELECT 1")


async def close_db():
    """
    Close all database connections.

    This function should be called during application shutdown to properly
    clean up database connections and resources.
    """
    await Tortoise.close_connections()
