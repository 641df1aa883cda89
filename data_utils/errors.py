"""
Error taxonomy for the segment core.

Storage errors never leave this core as raw psycopg / SQLAlchemy exceptions.
They are classified into a SegmentError subclass where they are caught, so
the transport layer only has to map an ErrorKind to a status code.
"""

from __future__ import annotations

import enum
import hashlib
import logging
from typing import Final, Optional

import psycopg
from sqlalchemy import exc as sa_exc

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# SQLSTATE groups
# ---------------------------------------------------------------------

SQLSTATE_CLASS_INTEGRITY: Final[str] = "23"
SQLSTATE_CLASS_SYNTAX_OR_ACCESS: Final[str] = "42"
SQLSTATE_CLASS_DATA_EXCEPTION: Final[str] = "22"
SQLSTATE_CLASS_FEATURE_NOT_SUPPORTED: Final[str] = "0A"
SQLSTATE_CLASS_CARDINALITY: Final[str] = "21"
SQLSTATE_CLASS_TRANSACTION_STATE: Final[str] = "25"
SQLSTATE_QUERY_CANCELED: Final[str] = "57014"

# Raised from inside functions the predicate calls (SQL, PL/pgSQL, externals).
SQLSTATE_CLASS_ROUTINE_EXCEPTION: Final[str] = "2F"
SQLSTATE_CLASS_EXTERNAL_ROUTINE: Final[str] = "38"
SQLSTATE_CLASS_EXTERNAL_INVOCATION: Final[str] = "39"
SQLSTATE_CLASS_PLPGSQL: Final[str] = "P0"

USER_QUERY_SQLSTATE_CLASSES: Final[tuple] = (
    SQLSTATE_CLASS_SYNTAX_OR_ACCESS,
    SQLSTATE_CLASS_DATA_EXCEPTION,
    SQLSTATE_CLASS_FEATURE_NOT_SUPPORTED,
    SQLSTATE_CLASS_CARDINALITY,
    SQLSTATE_CLASS_TRANSACTION_STATE,
    SQLSTATE_CLASS_ROUTINE_EXCEPTION,
    SQLSTATE_CLASS_EXTERNAL_ROUTINE,
    SQLSTATE_CLASS_EXTERNAL_INVOCATION,
    SQLSTATE_CLASS_PLPGSQL,
)


class ErrorKind(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    QUERY_SYNTAX = "query_syntax"
    INFRASTRUCTURE = "infrastructure"


class SegmentError(Exception):
    """Base error. `detail` is raw text, not a user-facing message."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(kind={self.kind.value}, detail={self.detail!r})>"


class InvalidInputError(SegmentError):
    kind = ErrorKind.INVALID_INPUT


class NotFoundError(SegmentError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(SegmentError):
    kind = ErrorKind.CONFLICT


class QuerySyntaxError(SegmentError):
    """The operator's filter expression is not a valid read-only predicate."""

    kind = ErrorKind.QUERY_SYNTAX


class InfrastructureError(SegmentError):
    kind = ErrorKind.INFRASTRUCTURE


# ---------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------

def _sqlstate(err: BaseException) -> Optional[str]:
    if isinstance(err, sa_exc.DBAPIError) and err.orig is not None:
        err = err.orig
    return getattr(err, "sqlstate", None)


def _message(err: BaseException) -> str:
    if isinstance(err, sa_exc.DBAPIError) and err.orig is not None:
        err = err.orig
    if isinstance(err, psycopg.Error) and err.diag.message_primary:
        return err.diag.message_primary
    return str(err).strip()


def classify_db_error(err: BaseException, *, user_query: bool = False) -> SegmentError:
    """
    Map a storage exception to a SegmentError.

    :param user_query: True when the failing statement embedded an
        operator-supplied predicate. Syntax, data, cardinality and
        transaction-state errors (read-only violations included) are then the
        operator's fault, as are errors raised by functions it calls.
    """
    if isinstance(err, SegmentError):
        return err

    state = _sqlstate(err) or ""
    detail = _message(err)

    if state.startswith(SQLSTATE_CLASS_INTEGRITY):
        return ConflictError(detail)

    if state == SQLSTATE_QUERY_CANCELED:
        return InfrastructureError("query timed out")

    if user_query and state.startswith(USER_QUERY_SQLSTATE_CLASSES):
        return QuerySyntaxError(detail)

    return InfrastructureError(detail)


def describe_filter(expression: Optional[str]) -> str:
    """
    Log-safe description of an operator-supplied filter expression.

    Raw predicates can hold subscriber attribute values, so logs only get a
    fingerprint and the length.
    """
    if not expression:
        return "<all>"
    digest = hashlib.sha256(expression.encode("utf-8")).hexdigest()[:12]
    return f"<filter sha256={digest} len={len(expression)}>"
