"""Dependency injection for the HTTP layer.

Services are built once by ``create_app`` and kept on ``app.state``;
these functions hand them to endpoints.
"""

from typing import Annotated, Any, Callable

from fastapi import Depends, Request

from chocan.config import ApiConfig
from chocan.ingestion import TransactionIngestion
from chocan.repository import Repository
from chocan.store.base import RecordStore


def repository_for(entity_type: type) -> Callable[[Request], Repository[Any]]:
    """Build a dependency returning the repository of ``entity_type``."""

    def get_repository(request: Request) -> Repository[Any]:
        return request.app.state.repositories[entity_type]

    return get_repository


def get_ingestion(request: Request) -> TransactionIngestion:
    return request.app.state.ingestion


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_api_config(request: Request) -> ApiConfig:
    return request.app.state.config.api


IngestionDep = Annotated[TransactionIngestion, Depends(get_ingestion)]
StoreDep = Annotated[RecordStore, Depends(get_store)]
ApiConfigDep = Annotated[ApiConfig, Depends(get_api_config)]
