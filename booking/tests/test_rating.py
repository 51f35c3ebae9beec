from decimal import Decimal

import pytest
from django.core.management import call_command
from rest_framework.exceptions import NotFound, ValidationError

from booking.exceptions import Conflict
from booking.models import EscortReview, Order
from booking.services.rating import (
    BASELINE_RATING,
    compute_rating,
    record_review,
    recompute_rating,
    set_review_visibility,
    wilson_lower_bound,
)

from .factories import APPOINTMENT_DATE, MORNING, make_escort, make_user


def test_no_reviews_means_default_rating():
    assert compute_rating([]) == (Decimal('5.0'), 0)


def test_known_ratings():
    assert compute_rating([5, 4, 5]) == (Decimal('4.6'), 3)
    assert compute_rating([5] * 20) == (Decimal('4.7'), 20)
    assert compute_rating([5] * 16 + [3] * 4) == (Decimal('4.2'), 20)


def test_single_review_barely_moves_the_rating():
    for stars in (1, 5):
        rating, count = compute_rating([stars])
        assert count == 1
        assert abs(rating - BASELINE_RATING) <= Decimal('0.1')


def test_four_stars_is_not_positive():
    assert compute_rating([4] * 20) == compute_rating([1] * 20)


def test_more_evidence_scores_higher_at_the_same_ratio():
    assert wilson_lower_bound(10, 10) < wilson_lower_bound(100, 100)
    assert wilson_lower_bound(8, 10) < wilson_lower_bound(80, 100)


def test_stored_rating_at_the_same_ratio_converges_after_smoothing():
    # the baseline blend pulls 10 reviews up to where 100 reviews land on their own
    assert compute_rating([5] * 8 + [1] * 2) == (Decimal('4.4'), 10)
    assert compute_rating([5] * 80 + [1] * 20) == (Decimal('4.4'), 100)
    assert compute_rating([1]) == (Decimal('4.7'), 1)


def test_consistent_negative_reviews_fall_below_four():
    rating, _ = compute_rating([1] * 10)
    assert rating == Decimal('3.9')
    assert rating < Decimal('4.0')


@pytest.mark.parametrize('ratings', [[1] * 50, [5] * 50, [3, 5] * 30, [2, 4, 5, 1, 5]])
def test_rating_stays_in_bounds(ratings):
    rating, _ = compute_rating(ratings)
    assert Decimal('3.0') <= rating <= Decimal('5.0')
    assert rating == rating.quantize(Decimal('0.1'))


@pytest.fixture
def completed_order(db, user, patient, hospital, service, escort):
    return Order.objects.create(
        order_no='KKL20300520TEST01',
        user=user,
        patient=patient,
        service=service,
        hospital=hospital,
        escort=escort,
        appointment_date=APPOINTMENT_DATE,
        appointment_time=MORNING,
        total_amount=Decimal('100.00'),
        paid_amount=Decimal('100.00'),
        status=Order.STATUS_COMPLETED,
    )


def test_review_recomputes_escort_rating(user, escort, completed_order, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        review = record_review(completed_order.id, user, 5, '很细心')

    assert review.escort_id == escort.id
    escort.refresh_from_db()
    assert escort.rating_count == 1
    assert escort.rating == Decimal('4.7')


def test_review_rules(user, completed_order):
    with pytest.raises(NotFound):
        record_review(completed_order.id, make_user('someone'), 5)
    with pytest.raises(ValidationError):
        record_review(completed_order.id, user, 6)

    record_review(completed_order.id, user, 4)
    with pytest.raises(Conflict):
        record_review(completed_order.id, user, 5)


def test_unfinished_orders_cannot_be_reviewed(user, completed_order):
    Order.objects.filter(id=completed_order.id).update(status=Order.STATUS_IN_PROGRESS)
    with pytest.raises(ValidationError):
        record_review(completed_order.id, user, 5)
    assert not EscortReview.objects.exists()


def test_hidden_reviews_are_excluded(user, escort, completed_order, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=True):
        review = record_review(completed_order.id, user, 1)
    with django_capture_on_commit_callbacks(execute=True):
        set_review_visibility(review.id, False)

    escort.refresh_from_db()
    assert escort.rating == Decimal('5.0')
    assert escort.rating_count == 0


@pytest.mark.django_db
def test_recompute_for_unknown_escort():
    with pytest.raises(NotFound):
        recompute_rating(999999)


def test_recompute_command_rebuilds_from_history(user, service, hospital):
    escort = make_escort('张阿姨')
    for i, stars in enumerate([5, 5, 2]):
        order = Order.objects.create(
            order_no=f'KKL20300520CMD{i:03d}',
            user=user,
            patient=user.patients.create(name=f'患者{i}'),
            service=service,
            hospital=hospital,
            escort=escort,
            appointment_date=APPOINTMENT_DATE,
            appointment_time=MORNING,
            total_amount=Decimal('100.00'),
            paid_amount=Decimal('100.00'),
            status=Order.STATUS_COMPLETED,
        )
        EscortReview.objects.create(order=order, escort=escort, user=user, rating=stars)

    call_command('recompute_escort_ratings', escort=escort.id)

    escort.refresh_from_db()
    assert escort.rating_count == 3
    assert escort.rating == compute_rating([5, 5, 2])[0]
