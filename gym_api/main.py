import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gym_api.core.config import settings
from gym_api.core.database import init_db
from gym_api.core.errors import register_exception_handlers
from gym_api.routes.admin import router as admin_router
from gym_api.routes.calendar import router as calendar_router
from gym_api.routes.clients import router as clients_router
from gym_api.routes.collaborators import router as collaborators_router
from gym_api.routes.gym import router as gym_router
from gym_api.routes.health import router as health_router
from gym_api.routes.memberships import router as memberships_router
from gym_api.routes.notes import router as notes_router
from gym_api.routes.product_sales import router as product_sales_router
from gym_api.routes.products import router as products_router
from gym_api.routes.suppliers import router as suppliers_router


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.log_level)
    app = FastAPI(title="Gym Management API", version="0.1.0")

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    app.include_router(collaborators_router, prefix="/colaborators", tags=["colaborators"])
    app.include_router(gym_router, prefix="/gym", tags=["gym"])
    app.include_router(memberships_router, prefix="/memberships", tags=["memberships"])
    app.include_router(clients_router, prefix="/clients", tags=["clients"])
    app.include_router(suppliers_router, prefix="/suppliers", tags=["suppliers"])
    app.include_router(products_router, prefix="/products", tags=["products"])
    app.include_router(product_sales_router, prefix="/product-sales", tags=["product-sales"])
    app.include_router(notes_router, prefix="/notes", tags=["notes"])
    app.include_router(calendar_router, prefix="/calendar", tags=["calendar"])

    if settings.env in ("dev", "test"):
        init_db()

    return app


app = create_app()
