"""
Patterns Router

- GET    /patterns         list
- GET    /patterns/stats   counts by type and confidence band
- POST   /patterns         upsert one pattern or a batch (merge on match)
- DELETE /patterns         clear the pattern store
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query

from ..context import ServiceContext, get_context
from ..models import PatternRecord

router = APIRouter(prefix="/patterns", tags=["patterns"])


@router.get("")
async def list_patterns(
    limit: Optional[int] = Query(None, ge=1, description="Max patterns to return"),
    ctx: ServiceContext = Depends(get_context)
):
    patterns = await ctx.patterns.list(limit)
    return {
        "status": "OK",
        "count": len(patterns),
        "limit": min(limit or ctx.patterns.capacity, ctx.patterns.capacity),
        "results": [pattern.model_dump(mode="json") for pattern in patterns]
    }


@router.get("/stats")
async def patterns_stats(ctx: ServiceContext = Depends(get_context)):
    return {"status": "OK", "stats": await ctx.patterns.stats()}


@router.post("")
async def upsert_patterns(
    payload: Union[List[PatternRecord], PatternRecord] = Body(...),
    ctx: ServiceContext = Depends(get_context)
):
    """
    Upsert one pattern or an array of patterns

    A pattern matching a stored one (same id, else same pattern and
    expected_next) is merged: wins and losses add up, occurrences keep the
    max, found_at never changes.
    """
    batch = payload if isinstance(payload, list) else [payload]
    result = await ctx.patterns.upsert_many(batch)
    return {
        "status": "OK",
        "received": result.received,
        "inserted": result.inserted,
        "merged": result.merged,
        "total_patterns": result.total
    }


@router.delete("")
async def clear_patterns(ctx: ServiceContext = Depends(get_context)):
    removed = await ctx.patterns.clear()
    return {"status": "OK", "removed": removed}
