"""
Order settlement: creation, payment, cancellation and status transitions.

Creating an order touches five ledgers (coupon, points, flash-sale stock,
service counters and escort counters).  All of them are written inside a
single ``transaction.atomic()`` block together with the order row and its
price snapshot, so either every ledger moves or none does.  Rows that two
requests may contend for (escort, points account, flash-sale item, the
order itself) are locked with ``select_for_update`` before they are read.
"""
from __future__ import annotations

import logging
import secrets
import string
from datetime import date, datetime
from functools import partial
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from ..exceptions import Conflict
from ..models import (
    CampaignParticipation,
    Escort,
    Hospital,
    Order,
    OrderLog,
    OrderPriceSnapshot,
    PointRecord,
    SeckillItem,
    Service,
    User,
    UserCoupon,
    UserPoint,
)
from .completion import run_completion_tasks
from .marketing import RULE_ORDER_CONSUME, patient_belongs_to_user, release_seckill_stock
from .pricing import load_pricing_config, quote

logger = logging.getLogger(__name__)

# An escort holding an order in one of these statuses owns the slot
SLOT_BUSY_STATUSES = (Order.STATUS_ASSIGNED, Order.STATUS_ARRIVED, Order.STATUS_IN_PROGRESS)
CANCELLABLE_STATUSES = (Order.STATUS_PENDING, Order.STATUS_PAID, Order.STATUS_CONFIRMED)

TRANSITIONS = {
    Order.STATUS_PENDING: {Order.STATUS_PAID, Order.STATUS_ASSIGNED, Order.STATUS_CANCELLED},
    Order.STATUS_PAID: {Order.STATUS_CONFIRMED, Order.STATUS_ASSIGNED, Order.STATUS_CANCELLED},
    Order.STATUS_CONFIRMED: {Order.STATUS_ASSIGNED, Order.STATUS_CANCELLED},
    Order.STATUS_ASSIGNED: {Order.STATUS_ARRIVED},
    Order.STATUS_ARRIVED: {Order.STATUS_IN_PROGRESS},
    Order.STATUS_IN_PROGRESS: {Order.STATUS_COMPLETED},
    Order.STATUS_COMPLETED: set(),
    Order.STATUS_CANCELLED: set(),
}

ORDER_NO_ALPHABET = string.ascii_uppercase + string.digits


def can_transition(current: str, new: str) -> bool:
    """Return True if an order may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, set())


def generate_order_no(now: Optional[datetime] = None) -> str:
    """``<prefix><YYYYMMDD><6 random [A-Z0-9]>``, e.g. ``KKL20240105X7Q2ZB``."""
    day = timezone.localtime(now or timezone.now())
    suffix = ''.join(secrets.choice(ORDER_NO_ALPHABET) for _ in range(6))
    return f"{settings.ORDER_NO_PREFIX}{day:%Y%m%d}{suffix}"


def _lock_order(order_id) -> Order:
    order = Order.objects.select_for_update().filter(id=order_id).first()
    if order is None:
        raise NotFound('订单不存在')
    return order


def _lock_available_escort(
    escort_id,
    *,
    hospital_id,
    appointment_date: date,
    appointment_time: str,
    exclude_order_id=None,
) -> Escort:
    """Lock the escort row and make sure the slot is still free."""
    escort = Escort.objects.select_for_update().filter(id=escort_id).first()
    if escort is None:
        raise Conflict('陪诊员不存在')
    if escort.status != 'active' or escort.work_status != 'working':
        raise Conflict('陪诊员当前不接单')
    busy = Order.objects.filter(
        escort=escort,
        hospital_id=hospital_id,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        status__in=SLOT_BUSY_STATUSES,
    )
    if exclude_order_id is not None:
        busy = busy.exclude(id=exclude_order_id)
    if busy.exists():
        raise Conflict('该陪诊员在此时段已有订单')
    return escort


def _count_escort_order(escort: Escort) -> None:
    Escort.objects.filter(pk=escort.pk).update(
        order_count=F('order_count') + 1,
        daily_order_count=F('daily_order_count') + 1,
    )


def _debit_points(user: User, points: int, order: Order) -> None:
    # re-read under lock; the balance seen while quoting may be stale
    account = UserPoint.objects.select_for_update().filter(user=user).first()
    if account is None or account.current_points < points:
        raise Conflict('积分余额不足')
    UserPoint.objects.filter(pk=account.pk).update(
        current_points=F('current_points') - points,
        used_points=F('used_points') + points,
    )
    account.refresh_from_db(fields=['current_points'])
    PointRecord.objects.create(
        user=user,
        type='use',
        points=-points,
        balance=account.current_points,
        source=RULE_ORDER_CONSUME,
        source_id=str(order.id),
        description=f'订单 {order.order_no} 积分抵扣',
    )


def _join_campaign(campaign_id, *, service_id, user: User, order: Order, discount) -> None:
    item = SeckillItem.objects.select_for_update().filter(
        campaign_id=campaign_id, service_id=service_id, status='active'
    ).first()
    if item is not None:
        if item.stock_sold >= item.stock_total:
            raise Conflict('活动名额已抢完')
        bought = (
            CampaignParticipation.objects.filter(campaign_id=campaign_id, user=user, order__service_id=service_id)
            .exclude(order__status=Order.STATUS_CANCELLED)
            .count()
        )
        if bought >= item.per_user_limit:
            raise Conflict('已达到活动限购数量')
        SeckillItem.objects.filter(pk=item.pk).update(stock_sold=F('stock_sold') + 1)
    CampaignParticipation.objects.create(
        campaign_id=campaign_id,
        user=user,
        order=order,
        discount_amount=discount,
        stock_reserved=item is not None,
    )


def create_order(
    user: User,
    *,
    service_id,
    patient_id,
    hospital_id,
    appointment_date: date,
    appointment_time: str,
    quantity: int = 1,
    escort_id=None,
    coupon_id=None,
    campaign_id=None,
    points_to_use: int = 0,
    remark: str = '',
) -> Order:
    """Quote and persist an order, moving every affected ledger atomically."""
    if not patient_belongs_to_user(patient_id, user):
        raise ValidationError('就诊人不存在或不属于当前用户')
    if not Hospital.objects.filter(id=hospital_id).exists():
        raise NotFound('医院不存在')

    config = load_pricing_config()
    now = timezone.now()
    with transaction.atomic():
        escort = None
        if escort_id:
            escort = _lock_available_escort(
                escort_id,
                hospital_id=hospital_id,
                appointment_date=appointment_date,
                appointment_time=appointment_time,
            )

        breakdown = quote(
            service_id,
            quantity=quantity,
            user=user,
            coupon_id=coupon_id,
            campaign_id=campaign_id,
            points_to_use=points_to_use,
            config=config,
            now=now,
        )

        order = Order.objects.create(
            order_no=generate_order_no(now),
            user=user,
            patient_id=patient_id,
            service_id=service_id,
            hospital_id=hospital_id,
            escort=escort,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            quantity=quantity,
            total_amount=breakdown.original_price,
            discount_amount=breakdown.total_savings,
            paid_amount=breakdown.final_price,
            campaign_id=breakdown.campaign_id,
            points_used=breakdown.points_used,
            points_discount=breakdown.points_discount,
            status=Order.STATUS_ASSIGNED if escort else Order.STATUS_PENDING,
            user_remark=remark,
        )
        OrderPriceSnapshot.objects.create(
            order=order,
            original_price=breakdown.original_price,
            final_price=breakdown.final_price,
            total_savings=breakdown.total_savings,
            payload=breakdown.as_snapshot(),
        )

        if breakdown.coupon_id:
            claimed = UserCoupon.objects.filter(
                id=breakdown.coupon_id, user=user, status=UserCoupon.STATUS_UNUSED
            ).update(status=UserCoupon.STATUS_USED, order=order, used_at=now)
            if not claimed:
                raise Conflict('优惠券已被使用')

        if breakdown.points_used:
            _debit_points(user, breakdown.points_used, order)

        if breakdown.campaign_id:
            _join_campaign(
                breakdown.campaign_id,
                service_id=service_id,
                user=user,
                order=order,
                discount=breakdown.campaign_discount,
            )

        Service.objects.filter(id=service_id).update(order_count=F('order_count') + 1)

        if escort is not None:
            _count_escort_order(escort)
            OrderLog.objects.create(
                order=order,
                from_status=Order.STATUS_PENDING,
                to_status=Order.STATUS_ASSIGNED,
                operator=user,
                remark='下单指定陪诊员',
            )

    logger.info(
        "order %s created by user %s: total=%s paid=%s escort=%s",
        order.order_no, user.pk, order.total_amount, order.paid_amount, escort_id,
    )
    return order


def mark_paid(order_no: str, transaction_id: str) -> Order:
    """Apply a payment callback; repeated callbacks leave the order untouched."""
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(order_no=order_no).first()
        if order is None:
            raise NotFound('订单不存在')
        if order.payment_time is not None or order.status == Order.STATUS_CANCELLED:
            logger.info("payment callback for %s ignored (status=%s)", order_no, order.status)
            return order
        if order.status != Order.STATUS_PENDING:
            # escort assigned at creation; record payment without moving the order back
            order.payment_time = timezone.now()
            order.transaction_id = transaction_id
            order.save(update_fields=['payment_time', 'transaction_id', 'updated_at'])
            logger.info("order %s paid while %s, tx=%s", order_no, order.status, transaction_id)
            return order
        order.status = Order.STATUS_PAID
        order.payment_time = timezone.now()
        order.transaction_id = transaction_id
        order.save(update_fields=['status', 'payment_time', 'transaction_id', 'updated_at'])
        OrderLog.objects.create(
            order=order,
            from_status=Order.STATUS_PENDING,
            to_status=Order.STATUS_PAID,
            remark=f'支付成功 {transaction_id}',
        )
    logger.info("order %s paid, tx=%s", order_no, transaction_id)
    return order


def _release_stock_quietly(campaign_id, service_id, order_no: str) -> None:
    try:
        released = release_seckill_stock(campaign_id, service_id)
    except Exception:
        logger.exception("failed to release campaign stock for cancelled order %s", order_no)
        return
    if released:
        logger.info("released campaign %s stock for cancelled order %s", campaign_id, order_no)


def cancel_order(order_id, user: Optional[User] = None, reason: str = '') -> Order:
    """Cancel an order that has not yet been assigned.

    ``user`` restricts the lookup to the order's owner; pass ``None`` for
    operator cancellations.
    """
    with transaction.atomic():
        order = _lock_order(order_id)
        if user is not None and order.user_id != user.pk:
            raise NotFound('订单不存在')
        if order.status not in CANCELLABLE_STATUSES:
            raise ValidationError('当前状态无法取消')
        previous = order.status
        order.status = Order.STATUS_CANCELLED
        order.cancel_reason = reason
        order.cancelled_at = timezone.now()
        order.save(update_fields=['status', 'cancel_reason', 'cancelled_at', 'updated_at'])
        OrderLog.objects.create(
            order=order,
            from_status=previous,
            to_status=Order.STATUS_CANCELLED,
            operator=user,
            remark=reason,
        )
        reserved = CampaignParticipation.objects.filter(order=order, stock_reserved=True).exists()
        if order.campaign_id and reserved:
            transaction.on_commit(partial(_release_stock_quietly, order.campaign_id, order.service_id, order.order_no))
    logger.info("order %s cancelled from %s", order.order_no, previous)
    return order


def _apply_transition(order: Order, new_status: str, *, operator: Optional[User], remark: str, fields=()) -> Order:
    """Move a locked order to ``new_status`` and log it.  Caller holds the transaction."""
    if not can_transition(order.status, new_status):
        raise ValidationError(f'订单状态不允许从 {order.status} 变更为 {new_status}')
    previous = order.status
    order.status = new_status
    order.save(update_fields=['status', 'updated_at', *fields])
    OrderLog.objects.create(
        order=order,
        from_status=previous,
        to_status=new_status,
        operator=operator,
        remark=remark,
    )
    logger.info("order %s: %s -> %s", order.order_no, previous, new_status)
    return order


def transition_order(order_id, new_status: str, *, operator: Optional[User] = None, remark: str = '') -> Order:
    with transaction.atomic():
        order = _lock_order(order_id)
        return _apply_transition(order, new_status, operator=operator, remark=remark)


def assign_escort(order_id, escort_id, *, operator: Optional[User] = None) -> Order:
    """Dispatch a paid or confirmed order to an escort."""
    with transaction.atomic():
        order = _lock_order(order_id)
        if order.status not in (Order.STATUS_PAID, Order.STATUS_CONFIRMED):
            raise ValidationError('仅已支付或已确认的订单可以派单')
        escort = _lock_available_escort(
            escort_id,
            hospital_id=order.hospital_id,
            appointment_date=order.appointment_date,
            appointment_time=order.appointment_time,
            exclude_order_id=order.id,
        )
        order.escort = escort
        _apply_transition(order, Order.STATUS_ASSIGNED, operator=operator, remark=f'派单给 {escort.name}', fields=['escort'])
        _count_escort_order(escort)
    return order


def confirm_order(order_id, *, operator: Optional[User] = None) -> Order:
    return transition_order(order_id, Order.STATUS_CONFIRMED, operator=operator, remark='订单已确认')


def mark_arrived(order_id, *, operator: Optional[User] = None) -> Order:
    return transition_order(order_id, Order.STATUS_ARRIVED, operator=operator, remark='陪诊员已到达')


def start_service(order_id, *, operator: Optional[User] = None) -> Order:
    return transition_order(order_id, Order.STATUS_IN_PROGRESS, operator=operator, remark='服务开始')


def complete_order(order_id, *, operator: Optional[User] = None) -> Order:
    """Finish the service and schedule the reward side effects after commit."""
    with transaction.atomic():
        order = _lock_order(order_id)
        order.completed_at = timezone.now()
        _apply_transition(order, Order.STATUS_COMPLETED, operator=operator, remark='服务完成', fields=['completed_at'])
        transaction.on_commit(partial(run_completion_tasks, order.id))
    return order
