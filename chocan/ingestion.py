"""Transaction ingestion: validate references, commit, then notify."""

import logging
import threading
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

from chocan.config import TRANSACTION_CHANNEL
from chocan.exceptions import NotificationError, StoreUnavailableError
from chocan.messaging.kafka import Publisher
from chocan.models import Member, Product, Provider, Transaction
from chocan.repository import Repository

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    RECEIVED = "received"
    PROVIDER_VALIDATED = "provider_validated"
    MEMBER_VALIDATED = "member_validated"
    SERVICE_VALIDATED = "service_validated"
    COMMITTED = "committed"
    NOTIFIED = "notified"
    REJECTED = "rejected"


class IngestionStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass
class TransactionSubmission:
    """A billable service event as entered at a terminal."""

    provider_number: int
    member_number: int
    service_code: int
    service_date: date
    service_comment: str = ""


@dataclass
class IngestionResult:
    """Outcome of one submission.

    ``status`` is what the caller reports; ``state`` is how far the
    workflow got. An accepted result whose state is ``COMMITTED`` rather
    than ``NOTIFIED`` is a degraded success: the record exists but the
    notification failed.
    """

    status: IngestionStatus
    state: IngestionState
    transaction: Transaction | None = None
    reason: str | None = None
    notification_error: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status == IngestionStatus.ACCEPTED

    @property
    def notified(self) -> bool:
        return self.state == IngestionState.NOTIFIED


class TransactionIngestion:
    """Validate-then-commit-then-notify workflow for terminal submissions.

    Parameters
    ----------
    providers, members, products, transactions : Repository
        Independent repositories for each entity type.
    publisher : Publisher
        Notification publisher for committed transactions.
    channel_key : str
        Channel the committed transaction is published to. Resolved at
        construction so a misconfigured channel fails at startup.
    """

    def __init__(
        self,
        providers: Repository[Provider],
        members: Repository[Member],
        products: Repository[Product],
        transactions: Repository[Transaction],
        publisher: Publisher,
        channel_key: str = TRANSACTION_CHANNEL,
    ) -> None:
        self.providers = providers
        self.members = members
        self.products = products
        self.transactions = transactions
        self.publisher = publisher
        self.channel_key = channel_key

        self.publisher.resolve_channel(channel_key)

    def submit(
        self,
        submission: TransactionSubmission,
        cancel_event: threading.Event | None = None,
    ) -> IngestionResult:
        """Process one submission; never raises.

        Parameters
        ----------
        submission : TransactionSubmission
            Terminal input.
        cancel_event : threading.Event | None
            If set before commit, nothing is written.

        Returns
        -------
        IngestionResult
            Outcome of the submission.
        """
        context = _log_context(submission)
        try:
            return self._submit(submission, cancel_event, context)
        except StoreUnavailableError as e:
            logger.error("Store unavailable while ingesting: %s", e, extra={"context": context})
            return IngestionResult(
                status=IngestionStatus.UNAVAILABLE,
                state=IngestionState.REJECTED,
                reason=str(e),
            )
        except Exception as e:
            logger.exception("Unexpected failure while ingesting", extra={"context": context})
            return IngestionResult(
                status=IngestionStatus.ERROR,
                state=IngestionState.REJECTED,
                reason=str(e),
            )

    def _submit(
        self,
        submission: TransactionSubmission,
        cancel_event: threading.Event | None,
        context: dict[str, Any],
    ) -> IngestionResult:
        provider = self.providers.get(submission.provider_number)
        if provider is None:
            return self._reject(context, f"Provider {submission.provider_number} not found")
        logger.debug("State %s", IngestionState.PROVIDER_VALIDATED.value)

        member = self.members.get(submission.member_number)
        if member is None:
            return self._reject(context, f"Member {submission.member_number} not found")
        logger.debug("State %s", IngestionState.MEMBER_VALIDATED.value)

        product = self.products.get(submission.service_code)
        if product is None:
            return self._reject(context, f"Service {submission.service_code} not found")
        logger.debug("State %s", IngestionState.SERVICE_VALIDATED.value)

        if cancel_event is not None and cancel_event.is_set():
            return self._reject(context, "cancelled")

        transaction = self.transactions.add(
            Transaction(
                provider_id=provider.id,
                member_id=member.id,
                product_id=product.id,
                product_cost=product.cost,
                service_date=submission.service_date,
                service_comment=submission.service_comment,
            )
        )
        context = {**context, "transaction_id": transaction.id}
        logger.info("Committed transaction %s", transaction.id, extra={"context": context})

        # Commit is irrevocable: notification is attempted exactly once, even if cancelled
        try:
            self.publisher.send(self.channel_key, transaction)
        except NotificationError as e:
            logger.warning(
                "Transaction %s committed but not notified: %s",
                transaction.id,
                e,
                extra={"context": context},
            )
            return self._degraded(transaction, e)
        except Exception as e:
            logger.exception(
                "Transaction %s committed but publishing crashed",
                transaction.id,
                extra={"context": context},
            )
            return self._degraded(transaction, e)

        return IngestionResult(
            status=IngestionStatus.ACCEPTED,
            state=IngestionState.NOTIFIED,
            transaction=transaction,
        )

    def _degraded(self, transaction: Transaction, error: Exception) -> IngestionResult:
        return IngestionResult(
            status=IngestionStatus.ACCEPTED,
            state=IngestionState.COMMITTED,
            transaction=transaction,
            notification_error=str(error),
        )

    def _reject(self, context: dict[str, Any], reason: str) -> IngestionResult:
        logger.info("Rejected submission: %s", reason, extra={"context": context})
        return IngestionResult(
            status=IngestionStatus.REJECTED,
            state=IngestionState.REJECTED,
            reason=reason,
        )


def _log_context(submission: TransactionSubmission) -> dict[str, Any]:
    """Identifiers attached to every log record of one submission."""
    return {
        "provider_number": submission.provider_number,
        "member_number": submission.member_number,
        "service_code": submission.service_code,
    }
