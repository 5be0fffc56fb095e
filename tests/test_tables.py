from menumate.models import VendorRole
from menumate.services.authorization import FOOD_COURT_DENIAL

from conftest import vendor_headers


async def test_table_listing_follows_shop_policy(client, factory):
    owner = await factory.vendor()
    stranger = await factory.vendor()
    admin = await factory.vendor(role=VendorRole.ADMIN)
    shop = await factory.shop(owner)
    await factory.table(shop, "1", "qrA")
    await factory.table(shop, "2", "qrB")

    response = await client.get(f"/api/shops/{shop.id}/tables", headers=vendor_headers(stranger))
    assert response.status_code == 403
    assert response.json()["success"] is False

    for vendor in (owner, admin):
        response = await client.get(f"/api/shops/{shop.id}/tables", headers=vendor_headers(vendor))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert [t["qrIdentifier"] for t in body["data"]] == ["qrA", "qrB"]


async def test_food_court_shop_is_managed_by_its_manager_only(client, factory):
    court = await factory.food_court()
    manager = await factory.vendor(role=VendorRole.MANAGER, food_court=court)
    owner = await factory.vendor()
    shop = await factory.shop(owner, food_court=court)

    response = await client.get(f"/api/shops/{shop.id}/tables", headers=vendor_headers(owner))
    assert response.status_code == 403
    assert response.json()["message"] == FOOD_COURT_DENIAL

    response = await client.get(f"/api/shops/{shop.id}/tables", headers=vendor_headers(manager))
    assert response.status_code == 200


async def test_create_single_table(client, factory):
    owner = await factory.vendor()
    shop = await factory.shop(owner)

    response = await client.post(
        f"/api/shops/{shop.id}/tables",
        json={"tableNumber": 7, "qrIdentifier": "qr-7"},
        headers=vendor_headers(owner),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["count"] == 1
    assert body["message"] == "1 QR code(s) created successfully."
    assert body["data"][0]["tableNumber"] == "7"
    assert body["data"][0]["shopId"] == shop.id


async def test_create_table_batch(client, factory):
    owner = await factory.vendor()
    shop = await factory.shop(owner)
    batch = [{"tableNumber": str(n), "qrIdentifier": f"qr-{n}"} for n in range(1, 4)]

    response = await client.post(
        f"/api/shops/{shop.id}/tables",
        json={"tableNumbers": batch},
        headers=vendor_headers(owner),
    )

    assert response.status_code == 201
    assert response.json()["count"] == 3

    listing = await client.get(f"/api/shops/{shop.id}/tables", headers=vendor_headers(owner))
    assert listing.json()["count"] == 3


async def test_create_table_rejects_malformed_bodies(client, factory):
    owner = await factory.vendor()
    shop = await factory.shop(owner)

    for body in ({}, {"tableNumber": "1"}, {"qrIdentifier": "qr"}, {"tableNumbers": []}):
        response = await client.post(
            f"/api/shops/{shop.id}/tables", json=body, headers=vendor_headers(owner)
        )
        assert response.status_code == 400, body
        assert response.json()["success"] is False


async def test_duplicate_qr_in_batch_creates_nothing(client, factory):
    owner = await factory.vendor()
    shop = await factory.shop(owner)
    await factory.table(shop, "1", "qr-1")

    response = await client.post(
        f"/api/shops/{shop.id}/tables",
        json={"tableNumbers": [
            {"tableNumber": "2", "qrIdentifier": "qr-2"},
            {"tableNumber": "3", "qrIdentifier": "qr-1"},
        ]},
        headers=vendor_headers(owner),
    )
    assert response.status_code == 400

    listing = await client.get(f"/api/shops/{shop.id}/tables", headers=vendor_headers(owner))
    assert listing.json()["count"] == 1


async def test_same_qr_allowed_in_different_shops(client, factory):
    owner = await factory.vendor()
    first = await factory.shop(owner)
    second = await factory.shop(owner, name="Chaat Stop")
    await factory.table(first, "1", "qr-1")

    response = await client.post(
        f"/api/shops/{second.id}/tables",
        json={"tableNumber": "1", "qrIdentifier": "qr-1"},
        headers=vendor_headers(owner),
    )
    assert response.status_code == 201


async def test_unknown_shop_is_404(client, factory):
    owner = await factory.vendor()
    response = await client.get("/api/shops/999/tables", headers=vendor_headers(owner))
    assert response.status_code == 404
    assert response.json()["message"] == "Shop not found"


async def test_missing_vendor_header_is_401(client, factory):
    owner = await factory.vendor()
    shop = await factory.shop(owner)
    response = await client.get(f"/api/shops/{shop.id}/tables")
    assert response.status_code == 401


async def test_delete_table_reports_count(client, factory):
    owner = await factory.vendor()
    stranger = await factory.vendor()
    shop = await factory.shop(owner)
    await factory.table(shop, "1", "qrA")

    response = await client.delete(f"/api/shops/{shop.id}/tables/qrA", headers=vendor_headers(stranger))
    assert response.status_code == 403

    response = await client.delete(f"/api/shops/{shop.id}/tables/qrA", headers=vendor_headers(owner))
    assert response.status_code == 200
    assert response.json()["count"] == 1

    response = await client.delete(f"/api/shops/{shop.id}/tables/qrA", headers=vendor_headers(owner))
    assert response.status_code == 200
    assert response.json()["count"] == 0


async def test_scanning_a_table_returns_shop_and_available_menu(client, factory):
    owner = await factory.vendor()
    shop = await factory.shop(owner)
    await factory.table(shop, "4", "qr-4")
    await factory.menu_item(shop, name="Idli", price=40)
    await factory.menu_item(shop, name="Vada", price=35, is_available=False)

    response = await client.get(f"/api/public/shops/{shop.id}/tables/qr-4")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["table"]["tableNumber"] == "4"
    assert data["shop"]["id"] == shop.id
    assert [item["name"] for item in data["menu"]] == ["Idli"]

    response = await client.get(f"/api/public/shops/{shop.id}/tables/nope")
    assert response.status_code == 404
