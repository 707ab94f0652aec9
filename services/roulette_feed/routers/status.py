"""
Health, status and collector control
"""

from fastapi import APIRouter, Depends

from ..context import ServiceContext, get_context

router = APIRouter(tags=["status"])

ENDPOINTS = [
    "GET    /status",
    "GET    /spins",
    "GET    /spins/latest",
    "GET    /spins/stats",
    "POST   /spins",
    "DELETE /spins",
    "GET    /patterns",
    "GET    /patterns/stats",
    "POST   /patterns",
    "DELETE /patterns",
    "POST   /collector/start",
    "POST   /collector/stop",
    "WS     /ws",
]


@router.get("/")
async def root(ctx: ServiceContext = Depends(get_context)):
    return {
        "service": ctx.settings.service_name,
        "status": "online",
        "endpoints": ENDPOINTS
    }


@router.get("/health")
async def health(ctx: ServiceContext = Depends(get_context)):
    """Health check endpoint"""
    return {"status": "healthy", "service": ctx.settings.service_name}


@router.get("/status")
async def status(ctx: ServiceContext = Depends(get_context)):
    """Full status with collection counters, store sizes and subscribers"""
    snapshot = await ctx.store.load()
    hub_stats = ctx.hub.get_stats()

    return {
        "status": "online",
        "uptime_seconds": ctx.uptime_seconds,
        "database": {
            "spins": len(snapshot.spins),
            "patterns": len(snapshot.patterns),
            "max_spins": ctx.ledger.capacity,
            "max_patterns": ctx.patterns.capacity,
            "last_update": snapshot.metadata.last_update,
            "store": ctx.store.get_stats()
        },
        "collector": {
            **ctx.collection.to_dict(),
            "interval_seconds": ctx.poller.interval,
            "feed": ctx.feed_client.get_stats()
        },
        "websocket": hub_stats,
        "connected_subscribers": hub_stats["active_connections"]
    }


@router.post("/collector/start")
async def start_collector(ctx: ServiceContext = Depends(get_context)):
    await ctx.poller.start()
    return {"status": "OK", "running": ctx.poller.running}


@router.post("/collector/stop")
async def stop_collector(ctx: ServiceContext = Depends(get_context)):
    await ctx.poller.stop()
    return {"status": "OK", "running": ctx.poller.running}
