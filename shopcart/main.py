# shopcart/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import uvicorn

from shopcart.api.routers import carts, health, inventory, products, users
from shopcart.data.database import Base, engine
from shopcart.utils.logging import get_logger

# register every model in Base.metadata before create_all
import shopcart.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create tables: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    # opaque to the client, full detail only in the log
    logger.error(f"Persistence failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "INTERNAL_ERROR", "message": "Internal error", "data": {}}},
    )


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Shop Cart Service",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_exception_handler(SQLAlchemyError, persistence_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(inventory.router)
    app.include_router(carts.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
