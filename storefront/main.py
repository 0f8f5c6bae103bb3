# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.config import Settings, settings as default_settings
from storefront.database import Database
from storefront.errors import StorageFailure, StorefrontError
from storefront.routes.admin import router as admin_router
from storefront.routes.auth import router as auth_router
from storefront.routes.cart import router as cart_router
from storefront.routes.logs import router as logs_router
from storefront.routes.orders import router as orders_router
from storefront.routes.payment import router as payment_router
from storefront.utils.razorpay_client import RazorpayClient

logger = logging.getLogger(__name__)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"success": False, "kind": "invalid_input", "message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        err = StorageFailure("Storage is unavailable")
        return JSONResponse(status_code=err.status_code, content=err.to_dict())


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None, gateway=None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Storage is acquired once per process and released on shutdown
        app.state.database = database or Database(settings.DATABASE_URL)
        app.state.database.create_all()
        app.state.gateway = gateway or RazorpayClient.from_settings(settings)
        logger.info("Storefront started, database=%s", app.state.database.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            app.state.database.dispose()
            logger.info("Storefront stopped")

    app = FastAPI(title="Storefront API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(cart_router)
    app.include_router(payment_router)
    app.include_router(orders_router)
    app.include_router(admin_router)
    app.include_router(logs_router)

    @app.get("/")
    def read_root():
        return {"message": "Storefront API is running"}

    return app


setup_logging(default_settings.LOG_LEVEL)
app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
