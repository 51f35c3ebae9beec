"""
Escort rating aggregation.

An escort's public rating is recomputed from every visible review each
time a review is added or moderated, never adjusted incrementally.  The
score is the Wilson lower bound of the share of positive reviews, mapped
onto the 3.0-5.0 display range and pulled towards a neutral baseline
while the escort has fewer than ``SMOOTHING_REVIEWS`` reviews.
"""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from functools import partial
from typing import Iterable, Tuple

from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from ..exceptions import Conflict
from ..models import Escort, EscortReview, Order, User

logger = logging.getLogger(__name__)

Z = Decimal('1.96')
POSITIVE_THRESHOLD = 4
BASELINE_RATING = Decimal('4.8')
DEFAULT_RATING = Decimal('5.0')
SMOOTHING_REVIEWS = 20
RATING_FLOOR = Decimal('3.0')
RATING_SPAN = Decimal('2.0')


def wilson_lower_bound(positive: int, total: int, z: Decimal = Z) -> Decimal:
    """Lower bound of the Wilson score interval for ``positive / total``."""
    if total <= 0:
        return Decimal('0')
    n = Decimal(total)
    p = Decimal(positive) / n
    z2 = z * z
    centre = p + z2 / (2 * n)
    margin = z * ((p * (1 - p) + z2 / (4 * n)) / n).sqrt()
    return (centre - margin) / (1 + z2 / n)


def compute_rating(ratings: Iterable[int]) -> Tuple[Decimal, int]:
    """Return ``(rating, review_count)`` for a set of star ratings."""
    ratings = list(ratings)
    n = len(ratings)
    if n == 0:
        return DEFAULT_RATING, 0
    positive = sum(1 for r in ratings if r > POSITIVE_THRESHOLD)
    mapped = RATING_FLOOR + RATING_SPAN * wilson_lower_bound(positive, n)
    weight = Decimal(min(n, SMOOTHING_REVIEWS)) / SMOOTHING_REVIEWS
    blended = weight * mapped + (1 - weight) * BASELINE_RATING
    rating = blended.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
    rating = min(max(rating, RATING_FLOOR), DEFAULT_RATING)
    return rating, n


def recompute_rating(escort_id) -> Escort:
    escort = Escort.objects.filter(id=escort_id).first()
    if escort is None:
        raise NotFound('陪诊员不存在')
    ratings = EscortReview.objects.filter(escort_id=escort_id, is_visible=True).values_list('rating', flat=True)
    rating, count = compute_rating(ratings)
    Escort.objects.filter(id=escort_id).update(rating=rating, rating_count=count)
    escort.rating, escort.rating_count = rating, count
    logger.info("escort %s rating recomputed: %s from %d review(s)", escort_id, rating, count)
    return escort


def record_review(order_id, user: User, rating: int, content: str = '') -> EscortReview:
    """Store the owner's review of a completed order and refresh the escort's rating."""
    if not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError('评分必须是 1 到 5 的整数')
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(id=order_id).first()
        if order is None or order.user_id != user.pk:
            raise NotFound('订单不存在')
        if order.status != Order.STATUS_COMPLETED:
            raise ValidationError('订单完成后才能评价')
        if order.escort_id is None:
            raise ValidationError('该订单没有陪诊员')
        if EscortReview.objects.filter(order=order).exists():
            raise Conflict('该订单已评价')
        review = EscortReview.objects.create(
            order=order, escort_id=order.escort_id, user=user, rating=rating, content=content
        )
        transaction.on_commit(partial(recompute_rating, order.escort_id))
    return review


def set_review_visibility(review_id, visible: bool) -> EscortReview:
    """Hide or restore a review; the escort's rating follows."""
    with transaction.atomic():
        review = EscortReview.objects.select_for_update().filter(id=review_id).first()
        if review is None:
            raise NotFound('评价不存在')
        if review.is_visible != visible:
            review.is_visible = visible
            review.save(update_fields=['is_visible', 'updated_at'])
            transaction.on_commit(partial(recompute_rating, review.escort_id))
    return review
