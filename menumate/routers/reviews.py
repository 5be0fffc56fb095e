"""Customer reviews of completed orders and the public review list."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from menumate.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from menumate.database import get_db
from menumate.models import Order, OrderStatus, Review, User
from menumate.routers.deps import get_current_user
from menumate.schemas import Envelope, ReviewCreate, ReviewResponse, ShopReview, ShopReviewList
from menumate.services.analytics import round_rating
from menumate.services.authorization import get_shop_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Reviews"])

DUPLICATE_REVIEW = "You have already submitted a review for this order."


@router.post("/orders/{order_id}/review", response_model=Envelope[ReviewResponse], status_code=201)
async def create_review(
    order_id: int,
    payload: ReviewCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Envelope[ReviewResponse]:
    """
    Review a completed order.

    Checked in order: the order exists, it is the caller's, it is
    Completed, and it has no review yet.
    """
    order = await db.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found.")
    if order.user_id != user.id:
        raise AuthorizationError("You can only review your own orders.")
    if order.order_status != OrderStatus.COMPLETED:
        raise ConflictError("You can only review completed orders.")

    existing = await db.scalar(select(Review.id).where(Review.order_id == order.id))
    if existing is not None:
        raise ConflictError(DUPLICATE_REVIEW)

    review = Review(
        rating=payload.rating,
        comment=payload.comment,
        user_id=user.id,
        shop_id=order.shop_id,
        order_id=order.id,
    )
    db.add(review)
    try:
        await db.commit()
    except IntegrityError:
        # Lost the race against a concurrent submission for the same order
        await db.rollback()
        raise ConflictError(DUPLICATE_REVIEW)

    logger.info(f"Review #{review.id} for order #{order.id} by user #{user.id}")
    return Envelope(message="Thank you for your review!", data=ReviewResponse.model_validate(review))


@router.get("/shops/{shop_id}/reviews", response_model=ShopReviewList)
async def list_shop_reviews(
    shop_id: int,
    db: AsyncSession = Depends(get_db),
) -> ShopReviewList:
    """Public reviews of a shop, newest first, with the average rating."""
    await get_shop_or_404(db, shop_id)

    reviews = (
        await db.scalars(
            select(Review)
            .where(Review.shop_id == shop_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
    ).all()

    average, review_count = (
        await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.shop_id == shop_id)
        )
    ).one()

    return ShopReviewList(
        count=len(reviews),
        average_rating=round_rating(average),
        review_count=int(review_count or 0),
        data=[ShopReview.model_validate(r) for r in reviews],
    )
