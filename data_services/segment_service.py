import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Optional

from data_utils.db_factory import create_schema, init_db, make_connection_factory
from data_utils.errors import InfrastructureError, describe_filter
from data_utils.settings import DatabaseSettings
from data_workers.pg_segment_repository import PGSegmentRepository
from main_configs import AUTO_CREATE_SCHEMA, SegmentConfigs

logger = logging.getLogger(__name__)

# Global executor for offloading blocking counts from the event loop
_DEFAULT_EXECUTOR = ThreadPoolExecutor(max_workers=4)


def build_segment_repository(settings: Optional[DatabaseSettings] = None) -> PGSegmentRepository:
    """
    Wire a repository to the process-wide connection pool.
    """
    settings = settings or DatabaseSettings()
    engine = init_db(settings)

    if AUTO_CREATE_SCHEMA:
        logger.info("AUTO_CREATE_SCHEMA is on, creating missing tables")
        create_schema(engine)

    return PGSegmentRepository(make_connection_factory(engine))


# ==============================================================================
# Asynchronous Entry Point (Non-Blocking)
# ==============================================================================
async def count_by_filter_async(
    repo: PGSegmentRepository,
    filter_expression: Optional[str],
    timeout: Optional[float] = None,
    executor: Optional[ThreadPoolExecutor] = None,
) -> int:
    """
    Async wrapper around repo.count_by_filter.

    The same deadline bounds the server-side statement and the caller's
    wait. If the caller gives up first, the worker thread still finishes and
    its read-only transaction is rolled back there.
    """
    loop = asyncio.get_running_loop()
    timeout = timeout if timeout is not None else SegmentConfigs.COUNT_TIMEOUT_SECONDS

    func = partial(repo.count_by_filter, filter_expression, timeout=timeout)

    try:
        return await asyncio.wait_for(
            loop.run_in_executor(executor or _DEFAULT_EXECUTOR, func),
            timeout=timeout if timeout and timeout > 0 else None,
        )
    except asyncio.TimeoutError as e:
        logger.warning("Subscriber count %s exceeded %ss", describe_filter(filter_expression), timeout)
        raise InfrastructureError("query timed out") from e
