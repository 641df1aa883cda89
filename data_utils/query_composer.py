"""
Builds listing/search statements from user-controlled sort and search input.

Column names and sort directions cannot be bound as parameters, so they are
checked against an allow-list and only the validated tokens are written into
the statement text. Search text is never written into the statement; it is
returned as a LIKE pattern to bind as a parameter value.
"""

from typing import Final, Iterable, Optional, Tuple

from main_configs import SegmentConfigs

ORDER_PLACEHOLDER: Final[str] = "%order%"

SORT_ASC: Final[str] = "ASC"
SORT_DESC: Final[str] = "DESC"

MATCH_ALL_PATTERN: Final[str] = "%"


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so the value matches literally."""
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def make_search_pattern(search_str: Optional[str]) -> str:
    """
    Turn raw search text into an ILIKE pattern.

    Empty (or whitespace-only) text gives a pattern matching every row.
    """
    term = search_str.strip() if isinstance(search_str, str) else ""
    if not term:
        return MATCH_ALL_PATTERN
    return f"%{escape_like(term)}%"


def sanitize_order(
    order_by: Optional[str],
    order: Optional[str],
    allowed_columns: Optional[Iterable[str]],
    default_column: str = SegmentConfigs.DEFAULT_ORDER_BY,
    default_order: str = SegmentConfigs.DEFAULT_ORDER,
) -> Tuple[str, str]:
    """Return a (column, direction) pair that is safe to put in SQL text."""
    allowed = set(allowed_columns or ())
    column = order_by if isinstance(order_by, str) and order_by in allowed else default_column

    direction = order.strip().upper() if isinstance(order, str) else ""
    if direction not in (SORT_ASC, SORT_DESC):
        direction = default_order

    return column, direction


def make_search_query(
    search_str: Optional[str],
    order_by: Optional[str],
    order: Optional[str],
    query_template: str,
    allowed_order_columns: Optional[Iterable[str]] = None,
) -> Tuple[str, str]:
    """
    Compose a listing statement.

    :param query_template: SQL containing the ``%order%`` marker for the
        ORDER BY expression, plus bound placeholders for everything else.
    :returns: (statement, search_pattern). The statement depends only on
        the template and the allow-listed sort tokens; the search pattern is
        a parameter value.
    """
    column, direction = sanitize_order(order_by, order, allowed_order_columns)
    stmt = query_template.replace(ORDER_PLACEHOLDER, f"{column} {direction}")
    return stmt, make_search_pattern(search_str)
