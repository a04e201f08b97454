"""
Stats Routes

Row counts per pipeline stage, used to watch a backlog drain.
"""

from fastapi import APIRouter, Depends
from typing import Annotated

from .models import StatsResponse
from .dependencies import get_record_store
from ..db import RecordStore

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get(
    "/",
    response_model=StatsResponse,
    summary="Get indexing progress",
)
async def get_stats(
    store: Annotated[RecordStore, Depends(get_record_store)],
) -> StatsResponse:
    return StatsResponse(**await store.get_stats())
