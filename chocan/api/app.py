"""FastAPI application factory for the ChocAn API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from chocan import __version__
from chocan.api.routes import health, terminal
from chocan.api.routes.resources import build_resource_router
from chocan.api.schemas import (
    MemberCreate,
    MemberRead,
    MemberUpdate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    ProviderCreate,
    ProviderRead,
    ProviderUpdate,
    TransactionRead,
)
from chocan.config import TRANSACTION_CHANNEL, ChocAnConfig
from chocan.exceptions import (
    ConcurrencyConflictError,
    ConfigurationError,
    EntityNotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from chocan.ingestion import TransactionIngestion
from chocan.logging import setup_logging
from chocan.messaging import KafkaPublisher, Publisher
from chocan.models import Member, Product, Provider, Transaction
from chocan.repository import Repository
from chocan.store import InMemoryRecordStore, PostgresRecordStore, RecordStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    EntityNotFoundError: status.HTTP_404_NOT_FOUND,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    StoreUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def build_store(config: ChocAnConfig) -> RecordStore:
    """Create the record store selected by ``config.store_backend``."""
    if config.store_backend == "memory":
        return InMemoryRecordStore()
    if config.store_backend == "postgres":
        return PostgresRecordStore(config.postgres.connection_string)
    raise ConfigurationError(f"Unknown store backend: {config.store_backend}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the store on startup."""
    store = app.state.store
    logger.info("ChocAn API starting with %s", type(store).__name__)
    if isinstance(store, PostgresRecordStore):
        store.create_tables()
    yield
    logger.info("ChocAn API shutting down")


async def handle_chocan_error(request: Request, exc: Exception) -> JSONResponse:
    status_code = ERROR_STATUS[type(exc)]
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def create_app(
    config: ChocAnConfig | None = None,
    store: RecordStore | None = None,
    publisher: Publisher | None = None,
) -> FastAPI:
    """Build the application and its services.

    Parameters
    ----------
    config : ChocAnConfig | None
        Configuration; read from the environment when omitted.
    store : RecordStore | None
        Record store shared by all repositories; built from config when omitted.
    publisher : Publisher | None
        Notification publisher; a KafkaPublisher over ``config.channels``
        when omitted.

    Returns
    -------
    FastAPI
        Configured application.

    Raises
    ------
    ConfigurationError
        If the store backend or the transaction channel is misconfigured.
    """
    config = config or ChocAnConfig.from_env()
    store = store if store is not None else build_store(config)
    publisher = publisher or KafkaPublisher(config.channels, config.kafka)

    repositories = {
        entity_type: Repository(entity_type, store)
        for entity_type in (Member, Provider, Product, Transaction)
    }
    ingestion = TransactionIngestion(
        providers=repositories[Provider],
        members=repositories[Member],
        products=repositories[Product],
        transactions=repositories[Transaction],
        publisher=publisher,
        channel_key=TRANSACTION_CHANNEL,
    )

    app = FastAPI(
        title=config.api.title,
        version=__version__,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.store = store
    app.state.repositories = repositories
    app.state.ingestion = ingestion

    for error_type in ERROR_STATUS:
        app.add_exception_handler(error_type, handle_chocan_error)

    app.include_router(health.router)
    app.include_router(terminal.router)
    app.include_router(
        build_resource_router("/api/members", Member, MemberRead, MemberCreate, MemberUpdate)
    )
    app.include_router(
        build_resource_router("/api/providers", Provider, ProviderRead, ProviderCreate, ProviderUpdate)
    )
    app.include_router(
        build_resource_router("/api/products", Product, ProductRead, ProductCreate, ProductUpdate)
    )
    app.include_router(build_resource_router("/api/transactions", Transaction, TransactionRead))

    return app


def main() -> None:
    """Run the API with uvicorn."""
    import uvicorn

    config = ChocAnConfig.from_env()
    setup_logging(level=config.log_level, format_type=config.log_format)
    uvicorn.run(create_app(config), host="0.0.0.0", port=8000, log_level="info")


if __name__ == "__main__":
    main()
