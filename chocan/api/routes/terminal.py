"""Provider terminal endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from chocan.api.dependencies import IngestionDep, repository_for
from chocan.api.schemas import (
    SubmissionResponse,
    TerminalMember,
    TerminalProvider,
    TerminalService,
    TransactionResource,
)
from chocan.exceptions import EntityNotFoundError
from chocan.ingestion import IngestionStatus, TransactionSubmission
from chocan.models import Member, Product, Provider
from chocan.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/terminal", tags=["terminal"])

STATUS_CODES = {
    IngestionStatus.ACCEPTED: status.HTTP_201_CREATED,
    IngestionStatus.REJECTED: status.HTTP_400_BAD_REQUEST,
    IngestionStatus.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    IngestionStatus.ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@router.get("/member/{number}", response_model=TerminalMember)
def verify_member(
    number: int,
    members: Repository[Member] = Depends(repository_for(Member)),
) -> Any:
    """Verify a member exists and return its status."""
    member = members.get(number)
    if member is None:
        raise EntityNotFoundError(f"Member {number} not found")
    return TerminalMember(id=member.id, status=member.status)


@router.get("/provider/{number}", response_model=TerminalProvider)
def verify_provider(
    number: int,
    providers: Repository[Provider] = Depends(repository_for(Provider)),
) -> Any:
    """Verify a provider exists."""
    provider = providers.get(number)
    if provider is None:
        raise EntityNotFoundError(f"Provider {number} not found")
    return TerminalProvider(id=provider.id, name=provider.name)


@router.get("/service/{code}", response_model=TerminalService)
def verify_service(
    code: int,
    products: Repository[Product] = Depends(repository_for(Product)),
) -> Any:
    """Look up a service code and return its name and cost."""
    product = products.get(code)
    if product is None:
        raise EntityNotFoundError(f"Service {code} not found")
    return TerminalService(id=product.id, name=product.name, cost=product.cost)


@router.post(
    "/transaction",
    status_code=status.HTTP_201_CREATED,
    response_model=SubmissionResponse,
    responses={400: {"model": SubmissionResponse}, 503: {"model": SubmissionResponse}},
)
def submit_transaction(resource: TransactionResource, ingestion: IngestionDep) -> JSONResponse:
    """Record a service delivered to a member."""
    result = ingestion.submit(
        TransactionSubmission(
            provider_number=resource.provider_number,
            member_number=resource.member_number,
            service_code=resource.service_code,
            service_date=resource.service_date,
            service_comment=resource.service_comment,
        )
    )

    if result.status == IngestionStatus.ACCEPTED:
        body = SubmissionResponse(status=result.status.value)
    elif result.status == IngestionStatus.ERROR:
        # Internal details stay in the log
        body = SubmissionResponse(status=result.status.value, reason="Internal error")
    else:
        body = SubmissionResponse(status=result.status.value, reason=result.reason)

    return JSONResponse(
        status_code=STATUS_CODES[result.status],
        content=body.model_dump(exclude_none=True),
    )
