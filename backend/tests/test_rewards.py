import pytest
from fastapi import HTTPException
from sqlalchemy import event
from sqlalchemy.orm import Session

from scrapx.config import settings
from scrapx.enums.listing import ListingStatus, RewardStatus
from scrapx.models.token_reward import TokenReward
from scrapx.models.user import User
from scrapx.routes import rewards
from scrapx.utils.token_rewards import RewardTransferError, normalize_wallet_address

from .utils import auth_headers

WALLET = "0x" + "ab" * 20
TX_HASH = "0x" + "12" * 32


@pytest.fixture
def reward_settings(monkeypatch):
    monkeypatch.setattr(settings, "reward_rpc_url", "https://rpc.example")
    monkeypatch.setattr(settings, "reward_token_address", "0x" + "cd" * 20)
    monkeypatch.setattr(settings, "reward_treasury_private_key", "0x" + "11" * 32)
    monkeypatch.setattr(settings, "reward_token_amount", 1)


@pytest.fixture
def transfers(monkeypatch, reward_settings):
    """Replaces the on-chain transfer; set outcome to an exception to make it fail"""
    state = {"calls": [], "outcome": TX_HASH}

    def fake_send(wallet_address):
        state["calls"].append(wallet_address)
        if isinstance(state["outcome"], Exception):
            raise state["outcome"]
        return state["outcome"]

    monkeypatch.setattr(rewards, "send_reward_tokens", fake_send)
    return state


def test_normalize_wallet_address():
    assert normalize_wallet_address(WALLET).lower() == WALLET
    with pytest.raises(HTTPException) as exc:
        normalize_wallet_address("0x1234")
    assert exc.value.status_code == 400


def test_config_reports_disabled_by_default(client):
    response = client.get("/api/rewards/config")
    assert response.json()["enabled"] is False


def test_claim_requires_configuration(client, seller, make_listing):
    listing = make_listing(seller, status=ListingStatus.SOLD)

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": WALLET},
        headers=auth_headers(seller),
    )

    assert response.status_code == 503


def test_claim_sends_tokens_for_sold_listing(client, db_session, seller, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": WALLET},
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "sent"
    assert body["tx_hash"] == TX_HASH
    assert body["wallet_address"].lower() == WALLET
    assert transfers["calls"][0].lower() == WALLET

    db_session.expire_all()
    assert db_session.get(User, seller.id).wallet_address.lower() == WALLET


def test_claim_twice_conflicts(client, seller, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)
    payload = {"listing_id": listing.id, "wallet_address": WALLET}

    client.post("/api/rewards/claim", json=payload, headers=auth_headers(seller))
    response = client.post("/api/rewards/claim", json=payload, headers=auth_headers(seller))

    assert response.status_code == 409
    assert len(transfers["calls"]) == 1


def test_claim_rejects_unsold_listing(client, seller, make_listing, transfers):
    listing = make_listing(seller)

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": WALLET},
        headers=auth_headers(seller),
    )

    assert response.status_code == 409
    assert transfers["calls"] == []


def test_claim_only_by_seller(client, seller, buyer, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": WALLET},
        headers=auth_headers(buyer),
    )

    assert response.status_code == 403


def test_claim_rejects_invalid_wallet(client, seller, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": "not-a-wallet"},
        headers=auth_headers(seller),
    )

    assert response.status_code == 400


def test_failed_transfer_is_recorded_and_retryable(client, db_session, seller, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)
    payload = {"listing_id": listing.id, "wallet_address": WALLET}
    transfers["outcome"] = RewardTransferError("insufficient funds")

    failed = client.post("/api/rewards/claim", json=payload, headers=auth_headers(seller))

    assert failed.status_code == 502
    reward = db_session.query(TokenReward).filter(TokenReward.listing_id == listing.id).one()
    assert reward.status == RewardStatus.FAILED

    transfers["outcome"] = TX_HASH
    retried = client.post("/api/rewards/claim", json=payload, headers=auth_headers(seller))

    assert retried.status_code == 201
    assert retried.json()["id"] == reward.id
    assert db_session.query(TokenReward).count() == 1

    mine = client.get("/api/rewards/mine", headers=auth_headers(seller)).json()
    assert [r["status"] for r in mine] == ["sent"]


def test_claim_is_reserved_before_tokens_move(client, db_session, seller, make_listing, transfers, monkeypatch):
    listing = make_listing(seller, status=ListingStatus.SOLD)
    seen = []

    def observe_send(wallet_address):
        db_session.expire_all()
        seen.append(db_session.query(TokenReward).filter(TokenReward.listing_id == listing.id).one().status)
        return TX_HASH

    monkeypatch.setattr(rewards, "send_reward_tokens", observe_send)

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": WALLET},
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    assert seen == [RewardStatus.PENDING]


def test_claim_in_progress_conflicts(client, db_session, seller, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)
    db_session.add(TokenReward(
        listing_id=listing.id, user_id=seller.id, wallet_address=WALLET,
        amount=1, status=RewardStatus.PENDING,
    ))
    db_session.commit()

    response = client.post(
        "/api/rewards/claim",
        json={"listing_id": listing.id, "wallet_address": WALLET},
        headers=auth_headers(seller),
    )

    assert response.status_code == 409
    assert transfers["calls"] == []


def test_unrecorded_transfer_is_not_paid_again(client, db_session, seller, make_listing, transfers):
    listing = make_listing(seller, status=ListingStatus.SOLD)
    payload = {"listing_id": listing.id, "wallet_address": WALLET}

    def refuse_sent_rewards(session, flush_context, instances):
        if any(isinstance(obj, TokenReward) and obj.status == RewardStatus.SENT for obj in session.dirty):
            raise RuntimeError("database went away")

    event.listen(Session, "before_flush", refuse_sent_rewards)
    try:
        lost = client.post("/api/rewards/claim", json=payload, headers=auth_headers(seller))
    finally:
        event.remove(Session, "before_flush", refuse_sent_rewards)

    assert lost.status_code == 500
    assert TX_HASH in lost.json()["detail"]

    again = client.post("/api/rewards/claim", json=payload, headers=auth_headers(seller))

    assert again.status_code == 409
    assert len(transfers["calls"]) == 1
    db_session.expire_all()
    reward = db_session.query(TokenReward).filter(TokenReward.listing_id == listing.id).one()
    assert reward.status == RewardStatus.PENDING
