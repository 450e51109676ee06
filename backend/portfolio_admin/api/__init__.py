# Portfolio Admin API
from portfolio_admin.api.auth import router as auth_router
from portfolio_admin.api.health import router as health_router

__all__ = ["auth_router", "health_router"]
