"""Domain models for the ChocAn backend."""

from chocan.models.base import NotificationEvent
from chocan.models.enums import MemberStatus, TransactionStatus
from chocan.models.member import Member
from chocan.models.product import Product
from chocan.models.provider import Provider
from chocan.models.transaction import Transaction

__all__ = [
    "Member",
    "MemberStatus",
    "NotificationEvent",
    "Product",
    "Provider",
    "Transaction",
    "TransactionStatus",
]
