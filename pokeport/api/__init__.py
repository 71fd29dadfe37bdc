from pokeport.api.health import router as health_router
from pokeport.api.market import router as market_router
from pokeport.api.scan import router as scan_router

__all__ = [
    "health_router",
    "market_router",
    "scan_router",
]
