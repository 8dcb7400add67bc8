# storefront/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from storefront.data.database import Base, engine
from storefront.api.routers import carts, orders, guests, payments, health
from storefront.domain.errors import StoreError
from storefront.services.rate_limiter import build_rate_limiter
from storefront.utils.logging import get_logger

# import wszystkich modeli przed create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)

logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
try:
    Base.metadata.create_all(bind=engine)
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error_type": exc.kind},
    )


def create_app(rate_limiter=None) -> FastAPI:
    app = FastAPI(
        title="Storefront Order Service",
        version="1.0.0",
    )
    app.state.rate_limiter = rate_limiter or build_rate_limiter()
    app.add_exception_handler(StoreError, store_error_handler)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(guests.router)
    app.include_router(payments.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
