"""
Negotiation enums
"""

from enum import Enum


class NegotiationStatus(str, Enum):
    PENDING = "pending"
    COUNTERED = "countered"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NegotiationAction(str, Enum):
    COUNTER = "counter"
    ACCEPT = "accept"
    REJECT = "reject"


ACTIVE_NEGOTIATION_STATUSES = (NegotiationStatus.PENDING, NegotiationStatus.COUNTERED)
