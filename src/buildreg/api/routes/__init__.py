"""API route modules."""

from buildreg.api.routes.cache import router as cache_router
from buildreg.api.routes.eas import router as eas_router
from buildreg.api.routes.ens import router as ens_router
from buildreg.api.routes.health import router as health_router
from buildreg.api.routes.registry import router as registry_router
from buildreg.api.routes.talent import router as talent_router

__all__ = [
    "cache_router",
    "eas_router",
    "ens_router",
    "health_router",
    "registry_router",
    "talent_router",
]
