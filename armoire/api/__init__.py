# armoire/api/__init__.py
from fastapi import FastAPI
from armoire.api.routers import (
    admin,
    auth,
    carts,
    checkout,
    health,
    orders,
    payments,
    users,
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Nala Armoire Checkout",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(payments.router)
    app.include_router(orders.router)
    app.include_router(admin.router)
    app.include_router(auth.router)

    return app
