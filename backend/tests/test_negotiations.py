import pytest
from sqlalchemy.exc import IntegrityError

from scrapx.enums.listing import ListingStatus
from scrapx.enums.negotiation import NegotiationStatus
from scrapx.models.negotiation import Negotiation
from scrapx.utils import negotiations

from .utils import auth_headers


def _open(client, listing, dealer, offer=100.0):
    return client.post(
        "/api/negotiations/",
        json={"listing_id": listing.id, "initial_offer": offer},
        headers=auth_headers(dealer),
    )


def test_dealer_opens_negotiation(client, seller, buyer, make_listing):
    listing = make_listing(seller)

    response = _open(client, listing, buyer, 90)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert body["seller_id"] == seller.id
    assert body["dealer_id"] == buyer.id
    assert body["agreed_price"] is None


def test_seller_cannot_negotiate_own_listing(client, seller, make_listing):
    listing = make_listing(seller)
    assert _open(client, listing, seller).status_code == 403


def test_offer_must_be_positive(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    assert _open(client, listing, buyer, 0).status_code == 422


@pytest.mark.parametrize("listing_status,expected", [
    (ListingStatus.SOLD, 409),
    (ListingStatus.DELETED, 404),
])
def test_closed_listings_reject_offers(client, seller, buyer, make_listing, listing_status, expected):
    listing = make_listing(seller, status=listing_status)
    assert _open(client, listing, buyer).status_code == expected


def test_only_one_active_negotiation_per_dealer(client, seller, buyer, other_user, make_listing):
    listing = make_listing(seller)

    first = _open(client, listing, buyer)
    second = _open(client, listing, buyer, 120)
    other_dealer = _open(client, listing, other_user)

    assert first.status_code == 201
    assert second.status_code == 409
    assert other_dealer.status_code == 201


def test_new_negotiation_allowed_after_rejection(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer).json()["id"]
    client.post(f"/api/negotiations/{negotiation_id}/reject", headers=auth_headers(seller))

    assert _open(client, listing, buyer, 110).status_code == 201


def test_counter_then_dealer_accepts(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer, 80).json()["id"]

    countered = client.post(
        f"/api/negotiations/{negotiation_id}/counter",
        json={"counter_offer": 95},
        headers=auth_headers(seller),
    )
    accepted = client.post(f"/api/negotiations/{negotiation_id}/accept", headers=auth_headers(buyer))

    assert countered.status_code == 200
    assert countered.json()["status"] == "countered"
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["agreed_price"] == 95


def test_seller_accepts_initial_offer(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer, 80).json()["id"]

    accepted = client.post(f"/api/negotiations/{negotiation_id}/accept", headers=auth_headers(seller))

    assert accepted.json()["agreed_price"] == 80


def test_counter_requires_positive_amount(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer).json()["id"]

    response = client.post(
        f"/api/negotiations/{negotiation_id}/counter",
        json={"counter_offer": -5},
        headers=auth_headers(seller),
    )

    assert response.status_code == 422


def test_disallowed_transitions_conflict(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer).json()["id"]

    dealer_accepts_pending = client.post(f"/api/negotiations/{negotiation_id}/accept", headers=auth_headers(buyer))
    client.post(f"/api/negotiations/{negotiation_id}/counter", json={"counter_offer": 120}, headers=auth_headers(seller))
    seller_counters_again = client.post(
        f"/api/negotiations/{negotiation_id}/counter", json={"counter_offer": 130}, headers=auth_headers(seller)
    )
    client.post(f"/api/negotiations/{negotiation_id}/reject", headers=auth_headers(buyer))
    reopen = client.post(f"/api/negotiations/{negotiation_id}/accept", headers=auth_headers(buyer))

    assert dealer_accepts_pending.status_code == 409
    assert seller_counters_again.status_code == 409
    assert reopen.status_code == 409


def test_outsider_cannot_touch_negotiation(client, seller, buyer, other_user, make_listing):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer).json()["id"]

    assert client.get(f"/api/negotiations/{negotiation_id}", headers=auth_headers(other_user)).status_code == 403
    assert client.post(
        f"/api/negotiations/{negotiation_id}/reject", headers=auth_headers(other_user)
    ).status_code == 403


def test_list_my_negotiations_by_role(client, seller, buyer, make_listing):
    sellers_listing = make_listing(seller, title="Seller paper")
    buyers_listing = make_listing(buyer, title="Buyer metal", material="Metal")
    _open(client, sellers_listing, buyer)
    _open(client, buyers_listing, seller)

    as_dealer = client.get("/api/negotiations/", params={"role": "dealer"}, headers=auth_headers(buyer)).json()
    as_seller = client.get("/api/negotiations/", params={"role": "seller"}, headers=auth_headers(buyer)).json()
    everything = client.get("/api/negotiations/", headers=auth_headers(buyer)).json()
    pending = client.get("/api/negotiations/", params={"status": "accepted"}, headers=auth_headers(buyer)).json()

    assert [n["listing_title"] for n in as_dealer] == ["Seller paper"]
    assert [n["listing_title"] for n in as_seller] == ["Buyer metal"]
    assert len(everything) == 2
    assert pending == []


def test_listing_negotiations_visible_to_seller_only(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    _open(client, listing, buyer)

    as_seller = client.get(f"/api/negotiations/listing/{listing.id}", headers=auth_headers(seller))
    as_dealer = client.get(f"/api/negotiations/listing/{listing.id}", headers=auth_headers(buyer))

    assert as_seller.status_code == 200
    assert as_seller.json()[0]["dealer_name"] == "Buyer"
    assert as_dealer.status_code == 403


def test_latest_negotiation_for_dealer(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    first_id = _open(client, listing, buyer, 50).json()["id"]
    client.post(f"/api/negotiations/{first_id}/reject", headers=auth_headers(seller))
    second_id = _open(client, listing, buyer, 70).json()["id"]

    latest = client.get(f"/api/negotiations/listing/{listing.id}/mine", headers=auth_headers(buyer))
    none_yet = client.get(f"/api/negotiations/listing/{listing.id}/mine", headers=auth_headers(seller))

    assert latest.json()["id"] == second_id
    assert none_yet.status_code == 404


def test_partial_unique_index_blocks_second_active_row(db_session, seller, buyer, make_listing):
    listing = make_listing(seller)
    db_session.add(Negotiation(listing_id=listing.id, dealer_id=buyer.id, seller_id=seller.id, initial_offer=10))
    db_session.commit()

    db_session.add(Negotiation(
        listing_id=listing.id, dealer_id=buyer.id, seller_id=seller.id,
        initial_offer=20, status=NegotiationStatus.COUNTERED,
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    db_session.add(Negotiation(
        listing_id=listing.id, dealer_id=buyer.id, seller_id=seller.id,
        initial_offer=30, status=NegotiationStatus.REJECTED,
    ))
    db_session.commit()


def test_concurrent_duplicate_insert_maps_to_conflict(client, db_session, seller, buyer, make_listing, monkeypatch):
    listing = make_listing(seller)
    assert _open(client, listing, buyer, 40).status_code == 201

    # Simulate a second request that passed the lookup before the first one committed
    monkeypatch.setattr(negotiations, "find_active_negotiation", lambda db, listing_id, dealer_id: None)
    response = _open(client, listing, buyer, 45)

    assert response.status_code == 409
    assert response.json()["detail"] == negotiations.DUPLICATE_DETAIL
    assert db_session.query(Negotiation).filter(Negotiation.listing_id == listing.id).count() == 1


@pytest.mark.parametrize("listing_status", [ListingStatus.SOLD, ListingStatus.DELETED])
def test_cannot_accept_or_counter_once_listing_is_closed(client, db_session, seller, buyer, make_listing, listing_status):
    listing = make_listing(seller)
    negotiation_id = _open(client, listing, buyer, 60).json()["id"]
    listing.status = listing_status
    db_session.commit()

    accepted = client.post(f"/api/negotiations/{negotiation_id}/accept", headers=auth_headers(seller))
    countered = client.post(
        f"/api/negotiations/{negotiation_id}/counter", json={"counter_offer": 80}, headers=auth_headers(seller)
    )
    rejected = client.post(f"/api/negotiations/{negotiation_id}/reject", headers=auth_headers(seller))

    assert accepted.status_code == 409
    assert countered.status_code == 409
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
