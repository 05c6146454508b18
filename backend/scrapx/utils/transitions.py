"""
Status transition rules for listings and negotiations
"""

from fastapi import HTTPException, status

from ..enums.listing import ListingStatus
from ..enums.negotiation import NegotiationStatus, NegotiationAction

# Allowed listing status changes; deleted has no outgoing edges
LISTING_TRANSITIONS = {
    ListingStatus.ACTIVE: {ListingStatus.PENDING_PICKUP, ListingStatus.SOLD, ListingStatus.DELETED},
    ListingStatus.PENDING_PICKUP: {ListingStatus.ACTIVE, ListingStatus.SOLD, ListingStatus.DELETED},
    ListingStatus.SOLD: {ListingStatus.DELETED},
    ListingStatus.DELETED: set(),
}

# (current status, acting party) -> allowed actions
NEGOTIATION_ACTIONS = {
    (NegotiationStatus.PENDING, "seller"): {
        NegotiationAction.COUNTER, NegotiationAction.ACCEPT, NegotiationAction.REJECT
    },
    (NegotiationStatus.COUNTERED, "dealer"): {
        NegotiationAction.ACCEPT, NegotiationAction.REJECT
    },
}

ACTION_RESULTS = {
    NegotiationAction.COUNTER: NegotiationStatus.COUNTERED,
    NegotiationAction.ACCEPT: NegotiationStatus.ACCEPTED,
    NegotiationAction.REJECT: NegotiationStatus.REJECTED,
}


def can_transition_listing(current: ListingStatus, target: ListingStatus) -> bool:
    if current == target:
        return True
    return target in LISTING_TRANSITIONS.get(ListingStatus(current), set())


def ensure_listing_transition(current: ListingStatus, target: ListingStatus) -> None:
    """Raise 409 if the listing cannot move from current to target"""
    if not can_transition_listing(current, target):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot change listing status from '{ListingStatus(current).value}' to '{ListingStatus(target).value}'"
        )


def negotiation_party(negotiation, user_id: int):
    """Return "dealer", "seller" or None for the given user"""
    if negotiation.dealer_id == user_id:
        return "dealer"
    if negotiation.seller_id == user_id:
        return "seller"
    return None


def next_negotiation_status(current: NegotiationStatus, party: str, action: NegotiationAction) -> NegotiationStatus:
    """
    Resolve the status a negotiation moves to when a party performs an action

    Raises:
        HTTPException: 409 when the action is not allowed for this party in this state
    """
    allowed = NEGOTIATION_ACTIONS.get((NegotiationStatus(current), party), set())
    if action not in allowed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"The {party} cannot {NegotiationAction(action).value} a negotiation that is '{NegotiationStatus(current).value}'"
        )
    return ACTION_RESULTS[action]
