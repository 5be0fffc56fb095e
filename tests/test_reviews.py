import asyncio
from datetime import timedelta

from menumate.models import OrderStatus, utc_now

from conftest import user_headers


async def test_review_lifecycle(client, factory):
    u1 = await factory.user()
    u2 = await factory.user()
    owner = await factory.vendor()
    shop = await factory.shop(owner)
    order = await factory.order(shop, user=u1, total_amount=250)

    response = await client.post(
        f"/api/orders/{order.id}/review",
        json={"rating": 5, "comment": "great"},
        headers=user_headers(u1),
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Thank you for your review!"
    assert body["data"]["orderId"] == order.id
    assert body["data"]["shopId"] == shop.id
    assert body["data"]["userId"] == u1.id
    assert body["data"]["rating"] == 5

    again = await client.post(
        f"/api/orders/{order.id}/review",
        json={"rating": 4, "comment": "still great"},
        headers=user_headers(u1),
    )
    assert again.status_code == 400
    assert again.json()["message"] == "You have already submitted a review for this order."

    other = await client.post(
        f"/api/orders/{order.id}/review",
        json={"rating": 1},
        headers=user_headers(u2),
    )
    assert other.status_code == 403


async def test_only_completed_orders_can_be_reviewed(client, factory):
    user = await factory.user()
    shop = await factory.shop(await factory.vendor())

    for status in (OrderStatus.PENDING, OrderStatus.READY, OrderStatus.CANCELLED):
        order = await factory.order(shop, user=user, status=status, total_amount=10)
        response = await client.post(
            f"/api/orders/{order.id}/review", json={"rating": 3}, headers=user_headers(user)
        )
        assert response.status_code == 400, status
        assert response.json()["message"] == "You can only review completed orders."


async def test_ownership_is_checked_before_status(client, factory):
    owner_user = await factory.user()
    caller = await factory.user()
    shop = await factory.shop(await factory.vendor())
    order = await factory.order(shop, user=owner_user, status=OrderStatus.PENDING, total_amount=10)

    response = await client.post(
        f"/api/orders/{order.id}/review", json={"rating": 3}, headers=user_headers(caller)
    )
    assert response.status_code == 403


async def test_guest_orders_cannot_be_reviewed(client, factory):
    caller = await factory.user()
    shop = await factory.shop(await factory.vendor())
    order = await factory.order(shop, user=None, total_amount=10)

    response = await client.post(
        f"/api/orders/{order.id}/review", json={"rating": 3}, headers=user_headers(caller)
    )
    assert response.status_code == 403


async def test_missing_order_is_404(client, factory):
    user = await factory.user()
    response = await client.post("/api/orders/4242/review", json={"rating": 3}, headers=user_headers(user))
    assert response.status_code == 404


async def test_review_requires_login_and_valid_rating(client, factory):
    user = await factory.user()
    shop = await factory.shop(await factory.vendor())
    order = await factory.order(shop, user=user, total_amount=10)

    response = await client.post(f"/api/orders/{order.id}/review", json={"rating": 3})
    assert response.status_code == 401

    response = await client.post(
        f"/api/orders/{order.id}/review", json={"rating": 6}, headers=user_headers(user)
    )
    assert response.status_code == 400


async def test_concurrent_submissions_create_one_review(client, factory):
    user = await factory.user()
    shop = await factory.shop(await factory.vendor())
    order = await factory.order(shop, user=user, total_amount=10)

    responses = await asyncio.gather(*[
        client.post(
            f"/api/orders/{order.id}/review",
            json={"rating": 4},
            headers=user_headers(user),
        )
        for _ in range(3)
    ])

    statuses = sorted(r.status_code for r in responses)
    assert statuses == [201, 400, 400]

    listing = await client.get(f"/api/shops/{shop.id}/reviews")
    assert listing.json()["reviewCount"] == 1


async def test_shop_reviews_are_public_newest_first_with_average(client, factory):
    alice = await factory.user(name="Alice")
    bob = await factory.user(name="Bob")
    shop = await factory.shop(await factory.vendor())
    first = await factory.order(shop, user=alice, total_amount=10)
    second = await factory.order(shop, user=bob, total_amount=10)
    older = await factory.review(first, rating=4, comment="good")
    older.created_at = utc_now() - timedelta(days=1)
    await factory.session.commit()
    await factory.review(second, rating=5, comment="excellent")

    response = await client.get(f"/api/shops/{shop.id}/reviews")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["reviewCount"] == 2
    assert body["averageRating"] == 4.5
    assert [r["comment"] for r in body["data"]] == ["excellent", "good"]
    assert body["data"][0]["user"] == {"name": bob.name}


async def test_shop_without_reviews_has_zero_average(client, factory):
    shop = await factory.shop(await factory.vendor())

    response = await client.get(f"/api/shops/{shop.id}/reviews")

    body = response.json()
    assert body["averageRating"] == 0
    assert body["reviewCount"] == 0
    assert body["data"] == []
