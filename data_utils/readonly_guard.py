"""
Read-only execution of operator-authored subscriber filters.

A segment query is free-form SQL predicate text. It is only ever executed
here, as the WHERE clause of a single COUNT(*) statement, inside a
transaction switched to READ ONLY and always rolled back. A predicate that
smuggles a write fails against the server's read-only check, and the count
statement is sent as one prepared statement, which PostgreSQL refuses to
build from more than one command.
"""

import logging
from typing import Final, Optional

import psycopg
from psycopg.rows import dict_row

from data_utils.errors import classify_db_error, describe_filter

logger = logging.getLogger(__name__)

COUNT_SUBSCRIBERS_SQL: Final[str] = "SELECT COUNT(*) AS total FROM subscribers{condition}"

SET_READ_ONLY_SQL: Final[str] = "SET TRANSACTION READ ONLY"

# set_config(..., true) is transaction-local, so the timeout dies with the rollback.
SET_STATEMENT_TIMEOUT_SQL: Final[str] = "SELECT set_config('statement_timeout', %s, true)"


def build_count_statement(filter_expression: Optional[str]) -> str:
    """Empty expression counts everyone; otherwise it becomes the WHERE clause."""
    expression = (filter_expression or "").strip()
    condition = f" WHERE {expression}" if expression else ""
    return COUNT_SUBSCRIBERS_SQL.format(condition=condition)


def count_subscribers_read_only(
    conn: psycopg.Connection,
    filter_expression: Optional[str],
    timeout: Optional[float] = None,
) -> int:
    """
    Count subscribers matching `filter_expression` without any chance of a write.

    :param timeout: seconds; bounds the statement server-side.
    :raises QuerySyntaxError: the expression was rejected by the server
        (bad syntax, unknown column, attempted write).
    :raises InfrastructureError: anything else, timeouts included.
    """
    stmt = build_count_statement(filter_expression)
    described = describe_filter(filter_expression)

    user_stage = False
    try:
        # force_rollback: nothing here is ever committed, on any exit path.
        with conn.transaction(force_rollback=True):
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(SET_READ_ONLY_SQL)
                if timeout:
                    # 0 disables statement_timeout, so never round down to it.
                    cur.execute(SET_STATEMENT_TIMEOUT_SQL, (str(max(1, int(timeout * 1000))),))

                user_stage = True
                cur.execute(stmt, prepare=True)
                row = cur.fetchone()
    except psycopg.Error as e:
        err = classify_db_error(e, user_query=user_stage)
        if user_stage:
            logger.warning("Subscriber count rejected %s: %s", described, err.detail)
        else:
            logger.error("Could not open read-only transaction for %s: %s", described, e)
        raise err from e

    total = int(row["total"]) if row else 0
    logger.debug("Subscriber count %s = %d", described, total)
    return total
