import re
from decimal import Decimal

import pytest
from django.db import IntegrityError
from rest_framework.exceptions import NotFound, ValidationError

from booking.exceptions import Conflict
from booking.models import (
    CampaignParticipation,
    Escort,
    Order,
    OrderLog,
    OrderPriceSnapshot,
    PointRecord,
    SeckillItem,
    UserCoupon,
)
from booking.services import orders as order_service
from booking.services.orders import (
    assign_escort,
    can_transition,
    cancel_order,
    complete_order,
    confirm_order,
    create_order,
    generate_order_no,
    mark_arrived,
    mark_paid,
    start_service,
)
from booking.services.pricing import quote as real_quote

from .factories import (
    AFTERNOON,
    APPOINTMENT_DATE,
    MORNING,
    give_points,
    make_campaign,
    make_coupon,
    make_patient,
    make_user,
)

pytestmark = pytest.mark.django_db


def _create(user, patient, hospital, service, **kw):
    kw.setdefault('appointment_date', APPOINTMENT_DATE)
    kw.setdefault('appointment_time', MORNING)
    return create_order(
        user,
        service_id=service.id,
        patient_id=patient.id,
        hospital_id=hospital.id,
        **kw,
    )


def test_order_number_format(settings):
    settings.ORDER_NO_PREFIX = 'KKL'
    order_no = generate_order_no()
    assert re.fullmatch(r'KKL\d{8}[A-Z0-9]{6}', order_no)


def test_transition_table():
    assert can_transition('pending', 'paid')
    assert can_transition('pending', 'assigned')
    assert can_transition('paid', 'confirmed')
    assert can_transition('confirmed', 'assigned')
    assert can_transition('assigned', 'arrived')
    assert can_transition('arrived', 'in_progress')
    assert can_transition('in_progress', 'completed')
    assert not can_transition('assigned', 'cancelled')
    assert not can_transition('pending', 'completed')
    assert not can_transition('completed', 'cancelled')
    assert not can_transition('cancelled', 'pending')


def test_order_number_collision_is_not_retried(user, patient, hospital, service, monkeypatch):
    monkeypatch.setattr(order_service, 'generate_order_no', lambda now=None: 'KKL20300520AAAAAA')
    _create(user, patient, hospital, service)
    with pytest.raises(IntegrityError):
        _create(user, patient, hospital, service, appointment_time=AFTERNOON)
    assert Order.objects.count() == 1
    assert OrderPriceSnapshot.objects.count() == 1


def test_create_order_writes_order_and_snapshot(user, patient, hospital, service):
    order = _create(user, patient, hospital, service, remark='请在门口等候')

    assert order.status == Order.STATUS_PENDING
    assert order.total_amount == Decimal('100.00')
    assert order.paid_amount == Decimal('100.00')
    snapshot = OrderPriceSnapshot.objects.get(order=order)
    assert Decimal(snapshot.payload['finalPrice']) == order.paid_amount
    assert snapshot.final_price == order.paid_amount
    service.refresh_from_db()
    assert service.order_count == 1


def test_price_snapshot_refuses_updates(user, patient, hospital, service):
    order = _create(user, patient, hospital, service)
    snapshot = order.price_snapshot
    snapshot.final_price = Decimal('1.00')
    with pytest.raises(ValueError):
        snapshot.save()


def test_patient_must_belong_to_user(user, hospital, service):
    stranger = make_user('stranger')
    other_patient = make_patient(stranger)
    with pytest.raises(ValidationError):
        _create(user, other_patient, hospital, service)
    assert Order.objects.count() == 0


def test_order_uses_coupon_points_and_campaign(user, patient, hospital, service):
    campaign = make_campaign('amount', '20')
    coupon = make_coupon(user, 'amount', '5')
    account = give_points(user, 1000)

    order = _create(user, patient, hospital, service, coupon_id=coupon.id, points_to_use=300)

    coupon.refresh_from_db()
    account.refresh_from_db()
    assert coupon.status == UserCoupon.STATUS_USED
    assert coupon.order_id == order.id
    assert order.points_used == 300
    assert order.points_discount == Decimal('3.00')
    assert order.paid_amount == Decimal('72.00')
    assert account.current_points == 700
    assert account.used_points == 300
    record = PointRecord.objects.get(user=user, type='use')
    assert record.points == -300
    assert record.balance == 700
    assert record.source_id == str(order.id)
    assert order.campaign_id == campaign.id
    assert CampaignParticipation.objects.filter(order=order, discount_amount=Decimal('20.00')).exists()


def test_failed_coupon_claim_rolls_back_every_ledger(user, patient, hospital, service, monkeypatch):
    coupon = make_coupon(user, 'amount', '5')

    def stale_quote(*args, **kwargs):
        breakdown = real_quote(*args, **kwargs)
        # another request consumed the coupon after this quote was taken
        UserCoupon.objects.filter(id=coupon.id).update(status=UserCoupon.STATUS_USED)
        return breakdown

    monkeypatch.setattr(order_service, 'quote', stale_quote)
    with pytest.raises(Conflict):
        _create(user, patient, hospital, service, coupon_id=coupon.id)

    assert Order.objects.count() == 0
    assert OrderPriceSnapshot.objects.count() == 0
    service.refresh_from_db()
    assert service.order_count == 0


def test_points_are_rechecked_inside_the_transaction(user, patient, hospital, service, monkeypatch):
    account = give_points(user, 1000)

    def stale_quote(*args, **kwargs):
        breakdown = real_quote(*args, **kwargs)
        # a concurrent order spent the balance in the meantime
        type(account).objects.filter(pk=account.pk).update(current_points=10)
        return breakdown

    monkeypatch.setattr(order_service, 'quote', stale_quote)
    with pytest.raises(Conflict):
        _create(user, patient, hospital, service, points_to_use=500)

    assert Order.objects.count() == 0
    assert PointRecord.objects.count() == 0


def test_requested_escort_is_assigned_and_counted(user, patient, hospital, service, escort):
    order = _create(user, patient, hospital, service, escort_id=escort.id)

    assert order.status == Order.STATUS_ASSIGNED
    escort.refresh_from_db()
    assert escort.order_count == 1
    assert escort.daily_order_count == 1
    log = OrderLog.objects.get(order=order)
    assert (log.from_status, log.to_status) == ('pending', 'assigned')


def test_escort_slot_is_exclusive(user, patient, hospital, service, escort):
    _create(user, patient, hospital, service, escort_id=escort.id)
    with pytest.raises(Conflict):
        _create(user, patient, hospital, service, escort_id=escort.id)

    # a different slot on the same day is fine
    _create(user, patient, hospital, service, escort_id=escort.id, appointment_time=AFTERNOON)
    escort.refresh_from_db()
    assert escort.order_count == 2
    assert Order.objects.count() == 2


def test_resting_or_missing_escort_is_a_conflict(user, patient, hospital, service):
    resting = Escort.objects.create(name='休息中', work_status='resting')
    with pytest.raises(Conflict):
        _create(user, patient, hospital, service, escort_id=resting.id)
    with pytest.raises(Conflict):
        _create(user, patient, hospital, service, escort_id=999999)
    assert Order.objects.count() == 0


def test_seckill_stock_is_reserved_and_limited(user, patient, hospital, service):
    campaign = make_campaign('amount', '50', type='seckill')
    item = SeckillItem.objects.create(campaign=campaign, service=service, stock_total=1, per_user_limit=1)

    _create(user, patient, hospital, service, campaign_id=campaign.id)
    item.refresh_from_db()
    assert item.stock_sold == 1
    assert CampaignParticipation.objects.get(campaign=campaign, user=user).stock_reserved

    buyer = make_user('second')
    with pytest.raises(Conflict):
        _create(buyer, make_patient(buyer), hospital, service, campaign_id=campaign.id)
    item.refresh_from_db()
    assert item.stock_sold == 1


def test_seckill_per_user_limit(user, patient, hospital, service):
    campaign = make_campaign('amount', '50', type='seckill')
    SeckillItem.objects.create(campaign=campaign, service=service, stock_total=10, per_user_limit=1)
    _create(user, patient, hospital, service, campaign_id=campaign.id)
    with pytest.raises(Conflict):
        _create(user, patient, hospital, service, campaign_id=campaign.id)


def test_cancel_releases_campaign_stock_after_commit(
    user, patient, hospital, service, django_capture_on_commit_callbacks
):
    campaign = make_campaign('amount', '50', type='seckill')
    item = SeckillItem.objects.create(campaign=campaign, service=service, stock_total=5)
    order = _create(user, patient, hospital, service, campaign_id=campaign.id)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        cancel_order(order.id, user=user, reason='行程有变')

    assert len(callbacks) == 1
    order.refresh_from_db()
    item.refresh_from_db()
    assert order.status == Order.STATUS_CANCELLED
    assert order.cancel_reason == '行程有变'
    assert order.cancelled_at is not None
    assert item.stock_sold == 0
    assert OrderLog.objects.filter(order=order, to_status='cancelled').exists()


def test_cancel_only_releases_stock_that_was_reserved(
    user, patient, hospital, service, django_capture_on_commit_callbacks
):
    campaign = make_campaign('amount', '50', type='seckill')
    order = _create(user, patient, hospital, service, campaign_id=campaign.id)
    assert not CampaignParticipation.objects.get(order=order).stock_reserved

    # flash-sale stock configured after the order was placed
    item = SeckillItem.objects.create(campaign=campaign, service=service, stock_total=5, stock_sold=3)
    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        cancel_order(order.id, user=user)

    assert callbacks == []
    item.refresh_from_db()
    assert item.stock_sold == 3


def test_stock_release_failure_does_not_undo_cancellation(
    user, patient, hospital, service, monkeypatch, django_capture_on_commit_callbacks
):
    campaign = make_campaign('amount', '50')
    SeckillItem.objects.create(campaign=campaign, service=service, stock_total=5)
    order = _create(user, patient, hospital, service, campaign_id=campaign.id)

    def broken(*args, **kwargs):
        raise RuntimeError('stock service down')

    monkeypatch.setattr(order_service, 'release_seckill_stock', broken)
    with django_capture_on_commit_callbacks(execute=True):
        cancel_order(order.id, user=user)

    order.refresh_from_db()
    assert order.status == Order.STATUS_CANCELLED


def test_cannot_cancel_after_assignment(user, patient, hospital, service, escort):
    order = _create(user, patient, hospital, service, escort_id=escort.id)
    with pytest.raises(ValidationError):
        cancel_order(order.id, user=user)


def test_cannot_cancel_someone_elses_order(user, patient, hospital, service):
    order = _create(user, patient, hospital, service)
    with pytest.raises(NotFound):
        cancel_order(order.id, user=make_user('nosy'))


def test_payment_callback_is_idempotent(user, patient, hospital, service):
    order = _create(user, patient, hospital, service)

    paid = mark_paid(order.order_no, 'WX0001')
    assert paid.status == Order.STATUS_PAID
    assert paid.transaction_id == 'WX0001'
    first_paid_at = paid.payment_time

    again = mark_paid(order.order_no, 'WX0001')
    assert again.status == Order.STATUS_PAID
    assert again.payment_time == first_paid_at
    assert OrderLog.objects.filter(order=order, to_status='paid').count() == 1


def test_payment_for_unknown_order(db):
    with pytest.raises(NotFound):
        mark_paid('KKL20300101NOPE00', 'WX0002')


def test_payment_on_pre_assigned_order_keeps_status(user, patient, hospital, service, escort):
    order = _create(user, patient, hospital, service, escort_id=escort.id)
    paid = mark_paid(order.order_no, 'WX0003')
    assert paid.status == Order.STATUS_ASSIGNED
    assert paid.payment_time is not None


def test_fulfilment_path(user, patient, hospital, service, escort):
    order = _create(user, patient, hospital, service)
    mark_paid(order.order_no, 'WX0004')
    confirm_order(order.id)
    assign_escort(order.id, escort.id)
    mark_arrived(order.id)
    start_service(order.id)
    done = complete_order(order.id)

    assert done.status == Order.STATUS_COMPLETED
    assert done.completed_at is not None
    assert done.escort_id == escort.id
    escort.refresh_from_db()
    assert escort.order_count == 1
    path = list(OrderLog.objects.filter(order=order).order_by('id').values_list('to_status', flat=True))
    assert path == ['paid', 'confirmed', 'assigned', 'arrived', 'in_progress', 'completed']


def test_illegal_transition_is_rejected(user, patient, hospital, service):
    order = _create(user, patient, hospital, service)
    with pytest.raises(ValidationError):
        mark_arrived(order.id)
    with pytest.raises(ValidationError):
        assign_escort(order.id, 1)
    order.refresh_from_db()
    assert order.status == Order.STATUS_PENDING


def test_assign_checks_the_escort_slot(user, patient, hospital, service, escort):
    _create(user, patient, hospital, service, escort_id=escort.id)
    order = _create(user, patient, hospital, service)
    mark_paid(order.order_no, 'WX0005')
    with pytest.raises(Conflict):
        assign_escort(order.id, escort.id)
