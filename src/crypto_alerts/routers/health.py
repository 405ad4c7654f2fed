"""Liveness and pricing-core diagnostics."""
from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/")
def root():
    """Return health check status."""
    return {"status": "ok"}


@router.get("/health")
def health(request: Request):
    """Health plus rate-limit window, cache size and last sweep outcome."""
    state = request.app.state
    scheduler = state.sweep_scheduler
    last = scheduler.last_report
    return {
        "status": "ok",
        "rate_limit": state.price_service.rate_limiter.snapshot(),
        "memory_cache_entries": len(state.price_service.memory_cache),
        "sweep": {
            "running": scheduler.running,
            "busy": scheduler.busy,
            "last_report": last.model_dump(mode="json") if last is not None else None,
        },
    }
