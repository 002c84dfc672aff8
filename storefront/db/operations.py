# storefront/db/operations.py
import time
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.errors import map_database_error
from storefront.core.logger import AppLogger


@asynccontextmanager
async def db_operation(logger: AppLogger, operation: str, table: str):
    """Time a block of persistence work and surface failures as AppErrors."""
    started = time.perf_counter()
    try:
        yield
    except SQLAlchemyError as exc:
        duration = (time.perf_counter() - started) * 1000
        logger.database_operation(operation, table, False, duration, exc)
        raise map_database_error(exc) from exc
    logger.database_operation(operation, table, True, (time.perf_counter() - started) * 1000)
