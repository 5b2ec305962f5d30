"""Enumeration types for ChocAn entities."""

from enum import Enum


class MemberStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class TransactionStatus(str, Enum):
    ACCEPTED = "accepted"
