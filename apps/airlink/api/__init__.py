"""API router registration helpers.

Routers are imported inside `register_routes` so importing a single router
module (as the tests do) does not pull in the others.
"""

from fastapi import FastAPI


def register_routes(app: FastAPI) -> None:
    """Attach all API routers (lazy imports)."""
    from airlink.api.health import router as health_router
    from airlink.api.realtime import router as realtime_router
    from airlink.api.sessions import router as sessions_router

    routers = [
        health_router,
        sessions_router,
        realtime_router,
    ]
    for router in routers:
        app.include_router(router)
