"""FastAPI application factory."""

import logging

from fastapi import FastAPI

from api.actions import create_actions_router
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from core.config import EngineConfig, load_config
from core.services.allocation_service import AllocationEngine
from core.services.pricing_service import PricingEngine

logger = logging.getLogger(__name__)


def create_app(config: EngineConfig | None = None) -> FastAPI:
    """Build the app with engines wired from config."""
    config = config or load_config()

    services = {
        "pricing": PricingEngine(config),
        "allocation": AllocationEngine(),
    }

    app = FastAPI(title="Back-office pricing")
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)
    app.include_router(create_actions_router(services), prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
