"""
Database initialization - creates all tables, enums, and indexes.
All database schema is defined in the SQLAlchemy models in closeflow/models/;
this module makes sure they are imported and creates the schema.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from closeflow.db.base import Base

# Import all models so they are registered with Base.metadata
from closeflow.models import (  # noqa: F401
    Workspace,
    WorkspaceMember,
    Category,
    Period,
    Task,
    ReconciliationLineItem,
    AuditLog,
)

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine):
    """
    Create all tables, enums, indexes and the period uniqueness constraint.
    Called on application startup; failures are logged and the app keeps
    starting so the schema can be created on the next boot.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialization completed successfully")
    except OSError as e:
        logger.error(
            "Cannot connect to the database (%s). Check DATABASE_URL and that the server is running.", e
        )
    except Exception:
        logger.exception("Error during database initialization")
