"""Repository for managing segment definitions in PostgreSQL."""


SEGMENT_COLUMNS = "id, uuid, name, segment_query, description, created_at, updated_at"

# Minimal listing: every segment, no window count. Used to fill selectors.
GET_SEGMENTS_SQL = f"""
    SELECT {SEGMENT_COLUMNS}
    FROM segments
    ORDER BY id
"""

# Full listing, search and single fetch share this statement.
# %order% is replaced with allow-listed tokens by the query composer;
# everything else is bound.
QUERY_SEGMENTS_SQL = f"""
    SELECT COUNT(*) OVER () AS total, {SEGMENT_COLUMNS}
    FROM segments
    WHERE
        CASE WHEN %(id)s > 0 THEN id = %(id)s ELSE TRUE END
        AND CASE WHEN %(uuid)s::UUID IS NOT NULL THEN uuid = %(uuid)s::UUID ELSE TRUE END
        AND name ILIKE %(search)s
    ORDER BY %order%, id
    OFFSET %(offset)s
    LIMIT (CASE WHEN %(limit)s < 1 THEN NULL ELSE %(limit)s END)
"""

CREATE_SEGMENT_SQL = """
    INSERT INTO segments (uuid, name, segment_query, description)
    VALUES (%(uuid)s, %(name)s, %(segment_query)s, %(description)s)
    RETURNING id
"""

# uuid and created_at are not writable after creation.
UPDATE_SEGMENT_SQL = """
    UPDATE segments SET
        name = %(name)s,
        segment_query = %(segment_query)s,
        description = %(description)s,
        updated_at = NOW()
    WHERE id = %(id)s
"""

DELETE_SEGMENTS_SQL = "DELETE FROM segments WHERE id = ANY(%(ids)s)"


import logging
import uuid
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterable, Iterator, List, Optional, Tuple, Union

import psycopg
from psycopg.rows import dict_row
from sqlalchemy.exc import SQLAlchemyError

from data_models.pg_segment import Segment, SegmentInput
from data_utils.errors import (
    InvalidInputError,
    NotFoundError,
    SegmentError,
    classify_db_error,
)
from data_utils.query_composer import make_search_query
from data_utils.readonly_guard import count_subscribers_read_only
from main_configs import SegmentConfigs

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], ContextManager[psycopg.Connection]]


def str_has_len(value: Optional[str], min_len: int, max_len: int) -> bool:
    """Length check on the stripped string."""
    return min_len <= len((value or "").strip()) <= max_len


class PGSegmentRepository:
    """
    PostgreSQL repository for segment definitions.

    Holds no state besides the connection factory: each call borrows a
    pooled connection, runs inside its own transaction and returns it.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        max_name_len: int = SegmentConfigs.STD_INPUT_MAX_LEN,
        count_timeout: Optional[float] = SegmentConfigs.COUNT_TIMEOUT_SECONDS,
        order_columns: Iterable[str] = SegmentConfigs.ORDER_COLUMNS,
    ):
        self._connect = connection_factory
        self.max_name_len = max_name_len
        self.count_timeout = count_timeout
        self.order_columns = tuple(order_columns)

    @contextmanager
    def _cursor(self, action: str) -> Iterator[psycopg.Cursor]:
        """Cursor inside a transaction; storage errors come out classified."""
        try:
            with self._connect() as conn:
                with conn.transaction():
                    with conn.cursor(row_factory=dict_row) as cur:
                        yield cur
        except (psycopg.Error, SQLAlchemyError) as e:
            logger.error("error %s: %s", action, e)
            raise classify_db_error(e) from e

    def _validate_input(self, data: SegmentInput) -> None:
        if not str_has_len(data.name, 1, self.max_name_len):
            raise InvalidInputError(
                f"invalid segment name: must be 1 to {self.max_name_len} characters"
            )

    # =========================================================================
    # 1. Listing & Search
    # =========================================================================

    def list_segments(self) -> List[Segment]:
        """All segments, unpaginated and without counts."""
        with self._cursor("fetching segments") as cur:
            cur.execute(GET_SEGMENTS_SQL)
            rows = cur.fetchall()
        return [Segment.from_row(r) for r in rows]

    def query_segments(
        self,
        search_str: str = "",
        order_by: str = "",
        order: str = "",
        offset: int = 0,
        limit: int = 0,
    ) -> Tuple[List[Segment], int]:
        """
        One page of segments whose name matches `search_str`.

        Returns the page and the size of the whole matching set. A limit
        below 1 means no limit.
        """
        stmt, search = make_search_query(
            search_str, order_by, order, QUERY_SEGMENTS_SQL, self.order_columns
        )
        params = {
            "id": 0,
            "uuid": None,
            "search": search,
            "offset": max(offset, 0),
            "limit": limit,
        }
        with self._cursor("fetching segments") as cur:
            cur.execute(stmt, params)
            rows = cur.fetchall()

        out = [Segment.from_row(r) for r in rows]
        total = out[0].total if out else 0
        return out, total

    def get_segment(self, segment_id: int = 0, segment_uuid: Union[str, uuid.UUID, None] = None) -> Segment:
        """Fetch one segment by id or by uuid (exactly one of them)."""
        has_id = bool(segment_id)
        has_uuid = bool(segment_uuid)

        if has_id == has_uuid:
            raise InvalidInputError("exactly one of segment id or uuid is required")
        if has_id and segment_id < 1:
            raise InvalidInputError(f"invalid segment id: {segment_id}")

        uu = None
        if has_uuid:
            try:
                uu = segment_uuid if isinstance(segment_uuid, uuid.UUID) else uuid.UUID(str(segment_uuid))
            except ValueError:
                raise InvalidInputError(f"invalid segment uuid: {segment_uuid}")

        stmt, search = make_search_query("", "", "", QUERY_SEGMENTS_SQL)
        params = {
            "id": segment_id if has_id else 0,
            "uuid": uu,
            "search": search,
            "offset": 0,
            "limit": 1,
        }
        with self._cursor("fetching segment") as cur:
            cur.execute(stmt, params)
            row = cur.fetchone()

        if row is None:
            raise NotFoundError("segment not found")
        return Segment.from_row(row)

    # =========================================================================
    # 2. Writes
    # =========================================================================

    def create_segment(self, data: SegmentInput) -> Segment:
        """Insert a segment and return it as stored."""
        self._validate_input(data)

        params = {
            "uuid": uuid.uuid4(),
            "name": data.name,
            "segment_query": data.segment_query,
            "description": data.description,
        }
        with self._cursor("creating segment") as cur:
            cur.execute(CREATE_SEGMENT_SQL, params)
            new_id = cur.fetchone()["id"]

        logger.info("Created segment %d (%s)", new_id, params["uuid"])

        # Separate read: a delete racing in between surfaces as NotFound.
        return self.get_segment(new_id)

    def update_segment(self, segment_id: int, data: SegmentInput) -> Segment:
        """Replace name, query and description of an existing segment."""
        if segment_id < 1:
            raise InvalidInputError(f"invalid segment id: {segment_id}")
        self._validate_input(data)

        params = {
            "id": segment_id,
            "name": data.name,
            "segment_query": data.segment_query,
            "description": data.description,
        }
        with self._cursor("updating segment") as cur:
            cur.execute(UPDATE_SEGMENT_SQL, params)
            affected = cur.rowcount

        if affected == 0:
            raise NotFoundError("segment not found")

        logger.info("Updated segment %d", segment_id)
        return self.get_segment(segment_id)

    def delete_segment(self, segment_id: int) -> None:
        self.delete_segments([segment_id])

    def delete_segments(self, segment_ids: Iterable[int]) -> None:
        """Delete segments by id. Missing ids are not an error."""
        ids = list(segment_ids)
        with self._cursor("deleting segments") as cur:
            # The list is bound as a single int[] parameter.
            cur.execute(DELETE_SEGMENTS_SQL, {"ids": ids})
            deleted = cur.rowcount

        logger.info("Deleted %d of %d requested segments", deleted, len(ids))

    # =========================================================================
    # 3. Subscriber counts
    # =========================================================================

    def count_by_filter(self, filter_expression: Optional[str], timeout: Optional[float] = None) -> int:
        """
        Number of subscribers matching an ad-hoc segment query.

        Runs read-only; see data_utils.readonly_guard.
        """
        timeout = timeout if timeout is not None else self.count_timeout
        try:
            with self._connect() as conn:
                return count_subscribers_read_only(conn, filter_expression, timeout=timeout)
        except SegmentError:
            raise
        except (psycopg.Error, SQLAlchemyError) as e:
            logger.error("error preparing subscriber query: %s", e)
            raise classify_db_error(e) from e
