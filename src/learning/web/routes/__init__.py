"""Route handlers for the web front end."""

from learning.web.routes.health import router as health_router
from learning.web.routes.session import router as session_router
from learning.web.routes.catalog import router as catalog_router
from learning.web.routes.quiz import router as quiz_router

__all__ = [
    "health_router",
    "session_router",
    "catalog_router",
    "quiz_router",
]
