"""CRUD and listing endpoints, built once per entity type."""

import logging
from dataclasses import replace
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from chocan.api.dependencies import ApiConfigDep, repository_for
from chocan.exceptions import EntityNotFoundError
from chocan.query import PagingOptions, SearchOptions, SortOptions
from chocan.repository import Repository

logger = logging.getLogger(__name__)


def build_resource_router(
    prefix: str,
    entity_type: type,
    read_schema: type[BaseModel],
    create_schema: type[BaseModel] | None = None,
    update_schema: type[BaseModel] | None = None,
) -> APIRouter:
    """Create a router exposing one repository over HTTP.

    Parameters
    ----------
    prefix : str
        Route prefix, e.g. ``/api/members``.
    entity_type : type
        Entity dataclass served by the router.
    read_schema : type[BaseModel]
        Response model.
    create_schema, update_schema : type[BaseModel] | None
        Request bodies for POST and PUT. When omitted the resource is
        read-only.

    Returns
    -------
    APIRouter
        Router with list, get, by-name and (optionally) write endpoints.
    """
    router = APIRouter(prefix=prefix, tags=[prefix.rsplit("/", 1)[-1]])
    get_repository = repository_for(entity_type)
    name = entity_type.__name__

    def to_read(entity: Any) -> BaseModel:
        return read_schema.model_validate(entity)

    def fetch(repository: Repository[Any], entity_id: int) -> Any:
        entity = repository.get(entity_id)
        if entity is None:
            raise EntityNotFoundError(f"{name} {entity_id} not found")
        return entity

    @router.get("", response_model=list[read_schema])
    def list_entities(
        api_config: ApiConfigDep,
        repository: Repository[Any] = Depends(get_repository),
        offset: int = 0,
        limit: int | None = None,
        sort: list[str] = Query(default=[]),
        search: list[str] = Query(default=[]),
    ):
        paging = PagingOptions(
            offset=offset,
            limit=limit if limit is not None else api_config.default_limit,
        )
        rows = repository.get_all(
            paging,
            SortOptions.from_strings(sort),
            SearchOptions.from_strings(search),
        )
        return [to_read(row) for row in rows]

    @router.get("/name/{entity_name}", response_model=list[read_schema])
    def list_by_name(entity_name: str, repository: Repository[Any] = Depends(get_repository)):
        return [to_read(row) for row in repository.get_all_by_name(entity_name)]

    @router.get("/{entity_id}", response_model=read_schema)
    def get_entity(entity_id: int, repository: Repository[Any] = Depends(get_repository)):
        return to_read(fetch(repository, entity_id))

    if create_schema is not None:

        @router.post("", response_model=read_schema, status_code=status.HTTP_201_CREATED)
        def create_entity(
            payload: create_schema,  # type: ignore[valid-type]
            repository: Repository[Any] = Depends(get_repository),
        ):
            entity = repository.add(entity_type(**payload.model_dump()))
            logger.info("Created %s %s", name, entity.id)
            return to_read(entity)

        @router.delete("/{entity_id}", response_model=read_schema)
        def delete_entity(entity_id: int, repository: Repository[Any] = Depends(get_repository)):
            entity = repository.delete(entity_id)
            if entity is None:
                raise EntityNotFoundError(f"{name} {entity_id} not found")
            logger.info("Deleted %s %s", name, entity_id)
            return to_read(entity)

    if update_schema is not None:

        @router.put("/{entity_id}", response_model=read_schema)
        def update_entity(
            entity_id: int,
            payload: update_schema,  # type: ignore[valid-type]
            repository: Repository[Any] = Depends(get_repository),
        ):
            current = fetch(repository, entity_id)
            entity = replace(current, **payload.model_dump())
            repository.update(entity)
            return to_read(entity)

    return router
