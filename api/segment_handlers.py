"""
API route handlers for segments.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from data_models.pg_segment import Segment, SegmentInput
from data_services.segment_service import count_by_filter_async
from data_utils.errors import ErrorKind, InvalidInputError, SegmentError
from data_workers.pg_segment_repository import PGSegmentRepository
from main_configs import SegmentConfigs

logger = logging.getLogger("LEO Segments API")

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.QUERY_SYNTAX: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INFRASTRUCTURE: 500,
}


# ============================================================
# Data Models (Schemas)
# ============================================================

class SegmentQueryRequest(BaseModel):
    segment_query: Optional[str] = ""


def ok(data: Any) -> Dict[str, Any]:
    return {"data": data}


def dump(segment: Segment, with_total: bool = False) -> Dict[str, Any]:
    data = segment.model_dump(mode="json")
    # Only the paginated listing has a matching-set size to report.
    if with_total:
        data["total"] = segment.total
    return data


# --- Repository Dependency ---
def get_segment_repository(request: Request) -> PGSegmentRepository:
    return request.app.state.segment_repository


# ============================================================
# Error mapping
# ============================================================

def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SegmentError)
    async def segment_error_handler(request: Request, exc: SegmentError):
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            # Engine diagnostics stay in the logs.
            logger.error("%s %s failed: %r", request.method, request.url.path, exc)
            message = "Internal server error"
        else:
            message = exc.detail
        return JSONResponse(
            status_code=status,
            content={"message": message, "kind": exc.kind.value},
        )


# ============================================================
# Router Setup
# ============================================================

def create_segment_router() -> APIRouter:
    router = APIRouter(prefix="/api/segments", tags=["segments"])

    # --------------------------------------------------------
    # 1. Listing (minimal or paginated search)
    # --------------------------------------------------------
    @router.get("")
    def get_segments(
        query: str = "",
        order_by: str = "",
        order: str = "",
        minimal: bool = False,
        page: int = Query(1, ge=1),
        per_page: int = Query(SegmentConfigs.DEFAULT_PER_PAGE, ge=0, description="0 returns all rows"),
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        # Minimal listing skips the window count. This is fast.
        if minimal:
            res = repo.list_segments()
            return ok({
                "results": [dump(s) for s in res],
                "total": len(res),
                "page": 1,
                "per_page": len(res),
            })

        query = query.strip()
        offset = (page - 1) * per_page
        res, total = repo.query_segments(query, order_by, order, offset, per_page)
        return ok({
            "query": query,
            "results": [dump(s, with_total=True) for s in res],
            "total": total,
            "page": page,
            "per_page": per_page,
        })

    # --------------------------------------------------------
    # 2. Count subscribers matching an ad-hoc segment query
    # --------------------------------------------------------
    @router.post("/count")
    async def count_subscribers_by_query(
        payload: SegmentQueryRequest,
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        total = await count_by_filter_async(repo, payload.segment_query)
        return ok({"total": total})

    # --------------------------------------------------------
    # 3. Single segment
    # --------------------------------------------------------
    @router.get("/{segment_id}")
    def get_segment(
        segment_id: int,
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        if segment_id < 1:
            raise InvalidInputError("invalid segment id")
        return ok(dump(repo.get_segment(segment_id)))

    # --------------------------------------------------------
    # 4. Create / Update
    # --------------------------------------------------------
    @router.post("")
    def create_segment(
        payload: SegmentInput = Body(...),
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        return ok(dump(repo.create_segment(payload)))

    @router.put("/{segment_id}")
    def update_segment(
        segment_id: int,
        payload: SegmentInput = Body(...),
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        if segment_id < 1:
            raise InvalidInputError("invalid segment id")
        return ok(dump(repo.update_segment(segment_id, payload)))

    # --------------------------------------------------------
    # 5. Delete (one by path, or many via ?id=1&id=2)
    # --------------------------------------------------------
    @router.delete("/{segment_id}")
    def delete_segment(
        segment_id: int,
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        if segment_id < 1:
            raise InvalidInputError("invalid segment id")
        repo.delete_segment(segment_id)
        return ok(True)

    @router.delete("")
    def delete_segments(
        ids: List[int] = Query(default=[], alias="id"),
        repo: PGSegmentRepository = Depends(get_segment_repository),
    ):
        if not ids or any(i < 1 for i in ids):
            raise InvalidInputError("invalid segment id")
        repo.delete_segments(ids)
        return ok(True)

    return router
