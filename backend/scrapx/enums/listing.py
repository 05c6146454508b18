"""
Listing-related enums
"""

from enum import Enum


class ListingStatus(str, Enum):
    ACTIVE = "active"
    PENDING_PICKUP = "pending_pickup"
    SOLD = "sold"
    DELETED = "deleted"


class ListingRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RewardStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
