"""
Purpose:
- FastAPI application factory and router mounts.
- Adds CORS for the web client.
- Uvicorn will serve this on 0.0.0.0:8000 by default.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.container import Services, build_services
from .core.logging import setup_logging
from .core.settings import settings
from .api.health import router as health_router
from .api.search import router as search_router
from .api.usage import router as usage_router
from .api.accounts import router as accounts_router

@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.services is None:
        app.state.services = build_services(settings)
    yield
    services: Services = app.state.services
    await services.jobs.shutdown()
    services.engine.dispose()

def create_app(services: Optional[Services] = None) -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="WebSum API", version="0.1.0", lifespan=lifespan)
    # Built lazily at startup unless the caller (tests) hands one in
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(search_router)
    app.include_router(usage_router)
    app.include_router(accounts_router)
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
