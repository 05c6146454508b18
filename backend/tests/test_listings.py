import pytest

from scrapx.enums.listing import ListingStatus, TransactionStatus
from scrapx.models.listing import Listing
from scrapx.models.transaction import Transaction

from .utils import auth_headers


def test_create_listing_defaults_price_to_base_price(client, seller, materials):
    response = client.post(
        "/api/listings/",
        json={
            "title": "Old newspapers",
            "material_type_id": materials["Paper"].id,
            "quantity": 25,
            "latitude": 13.05,
            "longitude": 80.25,
        },
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["listed_price"] == 12.0
    assert body["status"] == "active"
    assert body["seller_id"] == seller.id
    assert body["unit"] == "kg"


def test_create_listing_requires_coordinate_pair(client, seller, materials):
    response = client.post(
        "/api/listings/",
        json={"title": "Cans", "material_type_id": materials["Metal"].id, "quantity": 3, "latitude": 13.0},
        headers=auth_headers(seller),
    )
    assert response.status_code == 422


def test_create_listing_rejects_out_of_range_latitude(client, seller, materials):
    response = client.post(
        "/api/listings/",
        json={
            "title": "Cans", "material_type_id": materials["Metal"].id, "quantity": 3,
            "latitude": 95.0, "longitude": 80.0,
        },
        headers=auth_headers(seller),
    )
    assert response.status_code == 422


def test_create_listing_unknown_material(client, seller, materials):
    response = client.post(
        "/api/listings/",
        json={"title": "Mystery", "material_type_id": 999, "quantity": 1},
        headers=auth_headers(seller),
    )
    assert response.status_code == 404


def test_create_listing_requires_auth(client, materials):
    response = client.post(
        "/api/listings/",
        json={"title": "Cans", "material_type_id": materials["Metal"].id, "quantity": 3},
    )
    assert response.status_code == 401


def test_create_mixed_listing_splits_into_children(client, seller, materials):
    response = client.post(
        "/api/listings/mixed",
        json={
            "title": "Garage clear-out",
            "description": "Mixed recyclable materials",
            "quantity": 30,
            "latitude": 13.0827,
            "longitude": 80.2707,
            "materials": [
                {"material_type_id": materials["Paper"].id, "count": 3, "quantity": 10},
                {"material_type_id": materials["Metal"].id, "count": 1, "quantity": 20, "custom_price": 40},
            ],
        },
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    body = response.json()
    parent, children = body["parent"], body["children"]
    # (10 * 12 + 20 * 40) / 30
    assert abs(parent["listed_price"] - 920 / 30) < 1e-9
    assert parent["material_type_id"] == materials["Paper"].id
    assert [child["title"] for child in children] == [
        "Paper from Garage clear-out",
        "Metal from Garage clear-out",
    ]
    assert all(child["parent_listing_id"] == parent["id"] for child in children)
    assert children[0]["listed_price"] == 12.0
    assert children[1]["listed_price"] == 40
    assert children[0]["description"].endswith("This is part of a mixed material listing. Material: Paper (75%)")
    assert children[1]["description"].endswith("Material: Metal (25%)")


def test_create_donation(client, seller, materials, ngo):
    response = client.post(
        "/api/listings/donations",
        json={
            "title": "Children's books",
            "material_type_id": materials["Paper"].id,
            "quantity": 40,
            "ngo_id": ngo.id,
        },
        headers=auth_headers(seller),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["is_donation"] is True
    assert body["listed_price"] == 0
    assert body["unit"] == "item"
    assert body["ngo_id"] == ngo.id
    assert body["address"] == "45 Library Road, Mumbai, Maharashtra"


def test_create_donation_unknown_ngo(client, seller, materials):
    response = client.post(
        "/api/listings/donations",
        json={"title": "Books", "material_type_id": materials["Paper"].id, "quantity": 1, "ngo_id": 42},
        headers=auth_headers(seller),
    )
    assert response.status_code == 404


def test_browse_defaults_to_active_and_hides_deleted(client, seller, make_listing):
    active = make_listing(seller, title="Active paper")
    make_listing(seller, title="Sold paper", status=ListingStatus.SOLD)
    deleted = make_listing(seller, title="Deleted paper", status=ListingStatus.DELETED)

    default = client.get("/api/listings/").json()
    sold = client.get("/api/listings/", params={"status": "sold"}).json()
    asked_deleted = client.get("/api/listings/", params={"status": "deleted"}).json()

    assert [item["id"] for item in default] == [active.id]
    assert [item["title"] for item in sold] == ["Sold paper"]
    assert deleted.id not in [item["id"] for item in asked_deleted]


def test_browse_filters(client, seller, make_listing):
    make_listing(seller, "Paper", title="Office paper", listed_price=10)
    make_listing(seller, "Plastic", title="PET bottles", listed_price=20)
    make_listing(seller, "Metal", title="Copper wire", description="Stripped copper", listed_price=300)

    by_category = client.get("/api/listings/", params={"category": "plastic"}).json()
    by_price = client.get("/api/listings/", params={"min_price": 15, "max_price": 100}).json()
    by_search = client.get("/api/listings/", params={"search": "copper"}).json()

    assert [item["title"] for item in by_category] == ["PET bottles"]
    assert [item["title"] for item in by_price] == ["PET bottles"]
    assert [item["title"] for item in by_search] == ["Copper wire"]


def test_my_listings_excludes_deleted_unless_requested(client, seller, make_listing):
    make_listing(seller, title="Keep")
    make_listing(seller, title="Gone", status=ListingStatus.DELETED)

    default = client.get("/api/listings/my-listings", headers=auth_headers(seller)).json()
    deleted = client.get("/api/listings/my-listings", params={"status": "deleted"}, headers=auth_headers(seller)).json()

    assert [item["title"] for item in default] == ["Keep"]
    assert [item["title"] for item in deleted] == ["Gone"]


def test_get_listing_embeds_related_data(client, seller, make_listing):
    listing = make_listing(seller, latitude=12.9716, longitude=77.5946)

    response = client.get(f"/api/listings/{listing.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["material_type"]["name"] == "Paper"
    assert body["profiles"]["full_name"] == "Seller"
    assert body["geolocation"] == {"type": "Point", "coordinates": [77.5946, 12.9716]}


def test_get_listing_coordinates(client, seller, make_listing):
    listing = make_listing(seller, latitude=12.9716, longitude=77.5946)

    body = client.get(f"/api/listings/{listing.id}/coordinates").json()

    assert body == {"id": listing.id, "latitude": 12.9716, "longitude": 77.5946}


def test_deleted_listing_is_not_found(client, seller, make_listing):
    listing = make_listing(seller, status=ListingStatus.DELETED)
    assert client.get(f"/api/listings/{listing.id}").status_code == 404


def test_update_listing_owner_only(client, seller, buyer, admin, make_listing):
    listing = make_listing(seller)

    forbidden = client.put(f"/api/listings/{listing.id}", json={"title": "Mine now"}, headers=auth_headers(buyer))
    by_owner = client.put(f"/api/listings/{listing.id}", json={"title": "Fresh title"}, headers=auth_headers(seller))
    by_admin = client.put(f"/api/listings/{listing.id}", json={"quantity": 12}, headers=auth_headers(admin))

    assert forbidden.status_code == 403
    assert by_owner.json()["title"] == "Fresh title"
    assert by_admin.json()["quantity"] == 12


def test_update_listing_status_follows_lifecycle(client, seller, make_listing):
    listing = make_listing(seller, status=ListingStatus.SOLD)

    back_to_active = client.put(f"/api/listings/{listing.id}", json={"status": "active"}, headers=auth_headers(seller))
    to_deleted = client.put(f"/api/listings/{listing.id}", json={"status": "deleted"}, headers=auth_headers(seller))

    assert back_to_active.status_code == 409
    assert to_deleted.status_code == 200
    assert to_deleted.json()["status"] == "deleted"


@pytest.mark.parametrize("field", ["title", "quantity", "unit", "listed_price", "material_type_id"])
def test_update_listing_rejects_null_for_required_fields(client, db_session, seller, make_listing, field):
    listing = make_listing(seller)

    response = client.put(f"/api/listings/{listing.id}", json={field: None}, headers=auth_headers(seller))

    assert response.status_code == 422
    db_session.expire_all()
    assert db_session.get(Listing, listing.id).title == "Paper scrap"


def test_update_listing_can_clear_optional_fields(client, seller, make_listing):
    listing = make_listing(seller, description="Old newspapers")

    response = client.put(f"/api/listings/{listing.id}", json={"description": None}, headers=auth_headers(seller))

    assert response.status_code == 200
    assert response.json()["description"] is None


def test_update_listing_cannot_set_pending_pickup(client, db_session, seller, make_listing):
    listing = make_listing(seller)

    response = client.put(
        f"/api/listings/{listing.id}", json={"status": "pending_pickup"}, headers=auth_headers(seller)
    )

    assert response.status_code == 409
    db_session.expire_all()
    assert db_session.get(Listing, listing.id).status == ListingStatus.ACTIVE


def test_mark_sold_completes_pending_pickup(client, db_session, seller, buyer, make_listing):
    listing = make_listing(seller, status=ListingStatus.PENDING_PICKUP)
    pickup = Transaction(
        listing_id=listing.id, seller_id=seller.id, buyer_id=buyer.id,
        amount=listing.listed_price, status=TransactionStatus.PENDING,
    )
    db_session.add(pickup)
    db_session.commit()

    response = client.post(f"/api/listings/{listing.id}/mark-sold", headers=auth_headers(seller))

    assert response.status_code == 200
    assert response.json()["status"] == "sold"
    db_session.expire_all()
    completed = db_session.get(Transaction, pickup.id)
    assert completed.status == TransactionStatus.COMPLETED
    assert completed.completed_at is not None


def test_mark_sold_not_allowed_for_other_users(client, seller, buyer, make_listing):
    listing = make_listing(seller)
    response = client.post(f"/api/listings/{listing.id}/mark-sold", headers=auth_headers(buyer))
    assert response.status_code == 403


def test_update_location(client, seller, make_listing):
    listing = make_listing(seller, latitude=None, longitude=None)

    response = client.put(
        f"/api/listings/{listing.id}/location",
        json={"latitude": 19.076, "longitude": 72.8777, "address": "Mumbai"},
        headers=auth_headers(seller),
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["latitude"], body["longitude"], body["address"]) == (19.076, 72.8777, "Mumbai")


def test_soft_delete(client, db_session, seller, make_listing):
    listing = make_listing(seller)

    response = client.delete(f"/api/listings/{listing.id}", headers=auth_headers(seller))

    assert response.status_code == 200
    db_session.expire_all()
    assert db_session.get(Listing, listing.id).status == ListingStatus.DELETED
    assert client.delete(f"/api/listings/{listing.id}", headers=auth_headers(seller)).status_code == 404


def test_listing_recyclability_breakdown(client, seller, make_listing):
    listing = make_listing(
        seller, description="Mixed recyclable materials with Paper (3), Plastic, Metal."
    )

    body = client.get(f"/api/listings/{listing.id}/recyclability").json()

    assert body["materials"] == ["Paper (3)", "Plastic", "Metal"]
    assert body["recyclable_count"] == 2
    assert body["non_recyclable_count"] == 1


def test_listing_stats_cover_sold_listings(client, seller, make_listing):
    make_listing(seller, "Paper", status=ListingStatus.SOLD, quantity=100)
    make_listing(seller, "Plastic", status=ListingStatus.SOLD)
    make_listing(seller, "Metal")

    body = client.get("/api/listings/stats", headers=auth_headers(seller)).json()

    assert body["recyclability"]["total_sold"] == 2
    assert body["recyclability"]["recyclable_count"] == 1
    assert body["recyclability"]["recyclable_percentage"] == 50.0
    assert abs(body["environmental_impact"]["total_paper_weight_kg"] - 100) < 1e-9
    assert abs(body["environmental_impact"]["trees_saved"] - 1.7) < 1e-9
