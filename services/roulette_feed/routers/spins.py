"""
Spins Router

- GET    /spins          newest-first list
- GET    /spins/latest   most recent spin
- GET    /spins/stats    counts by color
- POST   /spins          add one spin or a batch (duplicates skipped)
- DELETE /spins          clear the ledger
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Body, Depends, Query

from ..context import ServiceContext, get_context
from ..models import SpinRecord, utc_now_iso
from ..stats import spin_stats

router = APIRouter(prefix="/spins", tags=["spins"])


@router.get("")
async def list_spins(
    limit: Optional[int] = Query(None, ge=1, description="Max spins to return"),
    ctx: ServiceContext = Depends(get_context)
):
    """Spins, newest first, capped at `limit` and at ledger capacity"""
    spins = await ctx.ledger.list(limit)
    return {
        "status": "OK",
        "count": len(spins),
        "limit": min(limit or ctx.ledger.capacity, ctx.ledger.capacity),
        "results": [spin.model_dump(mode="json") for spin in spins]
    }


@router.get("/latest")
async def latest_spin(ctx: ServiceContext = Depends(get_context)):
    spin = await ctx.ledger.latest()
    return {
        "status": "OK",
        "result": spin.model_dump(mode="json") if spin else None
    }


@router.get("/stats")
async def spins_stats(ctx: ServiceContext = Depends(get_context)):
    spins = await ctx.ledger.list()
    return {
        "status": "OK",
        "stats": {**spin_stats(spins), "limit": ctx.ledger.capacity}
    }


@router.post("")
async def add_spins(
    payload: Union[List[SpinRecord], SpinRecord] = Body(...),
    ctx: ServiceContext = Depends(get_context)
):
    """
    Add one spin or an array of spins

    Spins already stored (same id, or same timestamp and number) are
    skipped. New spins are pushed to live subscribers.
    """
    received = payload if isinstance(payload, list) else [payload]
    stamped = [spin.model_copy(update={"collected_at": utc_now_iso()}) for spin in received]

    result = await ctx.ledger.ingest_many(stamped)

    for spin in result.inserted:
        await ctx.hub.publish_spin(spin)

    return {
        "status": "OK",
        "received": result.received,
        "inserted": result.inserted_count,
        "total_spins": result.total
    }


@router.delete("")
async def clear_spins(ctx: ServiceContext = Depends(get_context)):
    removed = await ctx.ledger.clear()
    return {"status": "OK", "removed": removed}
