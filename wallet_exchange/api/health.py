from typing import Any, Dict

from fastapi import APIRouter, Depends

from wallet_exchange.auth import ExchangeService, get_exchange_service

router = APIRouter()


@router.get("/healthz")
async def health_check(
    exchange_service: ExchangeService = Depends(get_exchange_service),
) -> Dict[str, Any]:
    """Health check endpoint that verifies identity store reachability"""

    store = exchange_service.resolver.store
    ping = getattr(store, "ping", None)
    store_ok = await ping() if ping is not None else True

    return {
        "status": "healthy" if store_ok else "degraded",
        "identity_store": "healthy" if store_ok else "unavailable",
        "token_strategy": exchange_service.minter.strategy,
    }
