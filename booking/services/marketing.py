"""
Marketing collaborators consumed by pricing and order settlement.

Membership, coupons, points and referrals each have a much larger
surface in the operator back office; this module keeps only the narrow
calls the settlement core depends on.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict, List, Optional

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from ..models import (
    ConsumeUpgradeRule,
    CouponGrantRule,
    CouponTemplate,
    MembershipLevel,
    Order,
    Patient,
    PointRecord,
    PointRule,
    ReferralRecord,
    SeckillItem,
    User,
    UserCoupon,
    UserMembership,
    UserPoint,
)

logger = logging.getLogger(__name__)

# Orders whose paid amount counts towards lifetime spend
SPEND_STATUSES = (
    Order.STATUS_PAID,
    Order.STATUS_CONFIRMED,
    Order.STATUS_ASSIGNED,
    Order.STATUS_ARRIVED,
    Order.STATUS_IN_PROGRESS,
    Order.STATUS_COMPLETED,
)

RULE_ORDER_CONSUME = 'order_consume'
RULE_FIRST_ORDER = 'first_order'
RULE_REFERRAL_INVITER = 'referral_inviter'


def patient_belongs_to_user(patient_id, user: Optional[User]) -> bool:
    if user is None or not patient_id:
        return False
    return Patient.objects.filter(id=patient_id, user=user).exists()


def get_active_membership(user: Optional[User], *, now: Optional[datetime] = None) -> Optional[UserMembership]:
    """Return the user's active, unexpired membership or ``None``."""
    if user is None or not getattr(user, 'pk', None):
        return None
    now = now or timezone.now()
    return (
        UserMembership.objects.select_related('level')
        .filter(user=user, status='active', expire_at__gt=now)
        .order_by('-expire_at')
        .first()
    )


def lifetime_spend(user: User) -> Decimal:
    total = Order.objects.filter(user=user, status__in=SPEND_STATUSES).aggregate(total=Sum('paid_amount'))['total']
    return total or Decimal('0')


def grant_membership(user: User, level: MembershipLevel, *, days: int, source: str) -> UserMembership:
    """Grant ``level`` for ``days`` days, extending the active record if there is one."""
    now = timezone.now()
    with transaction.atomic():
        active = (
            UserMembership.objects.select_for_update()
            .filter(user=user, status='active', expire_at__gt=now)
            .order_by('-expire_at')
            .first()
        )
        if active is None:
            return UserMembership.objects.create(
                user=user, level=level, status='active', expire_at=now + timedelta(days=days), source=source
            )
        active.expire_at = max(active.expire_at, now) + timedelta(days=days)
        if level.sort >= active.level.sort:
            active.level = level
        active.save(update_fields=['expire_at', 'level'])
        return active


def check_consume_upgrade(user: User, order_amount: Decimal) -> Optional[UserMembership]:
    """Grant the membership level whose spend threshold this order just crossed."""
    total = lifetime_spend(user)
    previous = total - Decimal(order_amount)
    rule = (
        ConsumeUpgradeRule.objects.select_related('level')
        .filter(status='active', threshold__gt=previous, threshold__lte=total)
        .order_by('-threshold')
        .first()
    )
    if rule is None:
        return None
    membership = grant_membership(user, rule.level, days=rule.grant_days, source='consume_upgrade')
    logger.info("user %s reached spend %s, granted level %s", user.pk, total, rule.level.name)
    return membership


def issue_coupon(user: User, template: CouponTemplate, *, source: str, source_id: str = '') -> UserCoupon:
    now = timezone.now()
    if template.validity_type == 'fixed':
        start_at = template.start_at or now
        expire_at = template.end_at or now + timedelta(days=template.valid_days)
    else:
        start_at = now
        expire_at = now + timedelta(days=template.valid_days)
    return UserCoupon.objects.create(
        user=user,
        template=template,
        name=template.name,
        type=template.type,
        value=template.value,
        max_discount=template.max_discount,
        min_amount=template.min_amount,
        applicable_scope=template.applicable_scope,
        applicable_ids=list(template.applicable_ids or []),
        member_only=template.member_only,
        stack_with_member=template.stack_with_member,
        stack_with_campaign=template.stack_with_campaign,
        start_at=start_at,
        expire_at=expire_at,
        source=source,
        source_id=source_id,
    )


def _rule_matches(rule: CouponGrantRule, context: Dict[str, Any]) -> bool:
    cfg = rule.trigger_config or {}
    order_amount = Decimal(str(context.get('orderAmount', 0)))
    if rule.trigger == CouponGrantRule.TRIGGER_ORDER_COMPLETE:
        min_amount = cfg.get('minOrderAmount')
        return min_amount is None or order_amount >= Decimal(str(min_amount))
    if rule.trigger == CouponGrantRule.TRIGGER_CONSUME_MILESTONE:
        threshold = cfg.get('consumeThreshold')
        if threshold is None:
            return False
        threshold = Decimal(str(threshold))
        total = Decimal(str(context.get('totalConsume', 0)))
        # only the order that crosses the milestone earns it
        return total - order_amount < threshold <= total
    return False


def trigger_auto_grant(user: User, trigger: str, context: Optional[Dict[str, Any]] = None) -> List[UserCoupon]:
    """Issue coupons from every active grant rule of ``trigger`` matching ``context``."""
    context = context or {}
    rules = CouponGrantRule.objects.select_related('template').filter(
        trigger=trigger, status='active', template__status='active'
    )
    issued: List[UserCoupon] = []
    for rule in rules:
        if not _rule_matches(rule, context):
            continue
        for _ in range(rule.grant_quantity):
            issued.append(issue_coupon(user, rule.template, source='auto_grant', source_id=str(rule.id)))
    if issued:
        logger.info("auto-granted %d coupon(s) to user %s on %s", len(issued), user.pk, trigger)
    return issued


def add_points(user: User, points: int, *, record_type: str, source: str, source_id: str = '', description: str = '') -> PointRecord:
    """Credit ``points`` and append the matching ledger entry."""
    with transaction.atomic():
        account, _ = UserPoint.objects.select_for_update().get_or_create(user=user)
        UserPoint.objects.filter(pk=account.pk).update(
            current_points=F('current_points') + points,
            total_points=F('total_points') + points,
        )
        account.refresh_from_db()
        return PointRecord.objects.create(
            user=user,
            type=record_type,
            points=points,
            balance=account.current_points,
            source=source,
            source_id=source_id,
            description=description,
        )


def earn_points(user: User, amount: Decimal, *, rule_code: str, source_id: str = '', description: str = '') -> int:
    """Award points under the active rule ``rule_code``; returns the points credited."""
    rule = PointRule.objects.filter(code=rule_code, status='active').first()
    if rule is None:
        return 0
    if rule.points:
        points = rule.points
    else:
        points = int((Decimal(amount) * rule.points_rate).to_integral_value(rounding=ROUND_DOWN))
    if points <= 0:
        return 0
    add_points(user, points, record_type='earn', source=rule_code, source_id=source_id, description=description or rule.name)
    return points


def handle_first_order(user: User) -> Optional[ReferralRecord]:
    """Reward the inviter once the invitee completes a first order."""
    with transaction.atomic():
        record = (
            ReferralRecord.objects.select_for_update()
            .select_related('inviter')
            .filter(invitee=user, status='registered')
            .first()
        )
        if record is None:
            return None
        rule = PointRule.objects.filter(code=RULE_REFERRAL_INVITER, status='active').first()
        points = rule.points if rule else 0
        if points:
            add_points(
                record.inviter, points, record_type='earn', source=RULE_REFERRAL_INVITER,
                source_id=str(record.id), description='邀请好友首单奖励',
            )
        record.status = 'rewarded'
        record.inviter_points = points
        record.rewarded_at = timezone.now()
        record.save(update_fields=['status', 'inviter_points', 'rewarded_at'])
    logger.info("referral %s rewarded inviter %s with %d points", record.id, record.inviter_id, points)
    return record


def release_seckill_stock(campaign_id, service_id) -> bool:
    """Give back one reserved flash-sale unit; never drops below zero."""
    released = SeckillItem.objects.filter(
        campaign_id=campaign_id, service_id=service_id, stock_sold__gt=0
    ).update(stock_sold=F('stock_sold') - 1)
    return released > 0
