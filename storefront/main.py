# storefront/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.config import Settings, settings as default_settings
from storefront.database import create_engine, create_session_factory
from storefront.presentation.api import router

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle: the engine lives exactly as long as the app"""
        engine = create_engine(settings)
        app.state.settings = settings
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        logger.info("Storefront started")

        yield

        logger.info("Storefront stopping...")
        await engine.dispose()

    app = FastAPI(
        title="Storefront Order Service",
        description="Checkout and order history for the refurbished goods storefront",
        version="1.0.0",
        lifespan=lifespan
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": f"{field}: {first['msg']}", "field": field}
        )

    app.include_router(router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=9000)
