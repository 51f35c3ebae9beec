"""
Reward side effects run once an order has been completed.

Each task is independent: a failing task is logged and the remaining
tasks still run.  The whole list runs at most once per order because
the order's ``rewards_settled`` flag is claimed with a conditional
update before any task starts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Tuple

from django.db import transaction

from ..models import CouponGrantRule, Order, User
from .marketing import (
    RULE_FIRST_ORDER,
    RULE_ORDER_CONSUME,
    check_consume_upgrade,
    earn_points,
    handle_first_order,
    lifetime_spend,
    trigger_auto_grant,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionContext:
    order: Order
    user: User
    amount: Decimal
    is_first_order: bool


def upgrade_membership(ctx: CompletionContext) -> None:
    check_consume_upgrade(ctx.user, ctx.amount)


def grant_coupons(ctx: CompletionContext) -> None:
    trigger_auto_grant(
        ctx.user,
        CouponGrantRule.TRIGGER_ORDER_COMPLETE,
        {'orderAmount': ctx.amount, 'orderId': ctx.order.id},
    )
    trigger_auto_grant(
        ctx.user,
        CouponGrantRule.TRIGGER_CONSUME_MILESTONE,
        {'orderAmount': ctx.amount, 'totalConsume': lifetime_spend(ctx.user)},
    )


def reward_referral(ctx: CompletionContext) -> None:
    if ctx.is_first_order:
        handle_first_order(ctx.user)


def award_points(ctx: CompletionContext) -> None:
    source_id = str(ctx.order.id)
    earn_points(ctx.user, ctx.amount, rule_code=RULE_ORDER_CONSUME, source_id=source_id,
                description=f'订单 {ctx.order.order_no} 消费奖励')
    if ctx.is_first_order:
        earn_points(ctx.user, ctx.amount, rule_code=RULE_FIRST_ORDER, source_id=source_id,
                    description='首单奖励')


COMPLETION_TASKS: List[Tuple[str, Callable[[CompletionContext], None]]] = [
    ('membership_upgrade', upgrade_membership),
    ('coupon_auto_grant', grant_coupons),
    ('referral_first_order', reward_referral),
    ('points_reward', award_points),
]


def run_completion_tasks(order_id) -> List[str]:
    """Run every completion task for the order; returns the names of failed tasks."""
    claimed = Order.objects.filter(
        id=order_id, status=Order.STATUS_COMPLETED, rewards_settled=False
    ).update(rewards_settled=True)
    if not claimed:
        logger.info("completion rewards for order %s already settled or not completed", order_id)
        return []

    order = Order.objects.select_related('user').get(id=order_id)
    is_first = not Order.objects.filter(user=order.user, status=Order.STATUS_COMPLETED).exclude(id=order.id).exists()
    ctx = CompletionContext(order=order, user=order.user, amount=order.paid_amount, is_first_order=is_first)

    failed: List[str] = []
    for name, task in COMPLETION_TASKS:
        try:
            with transaction.atomic():
                task(ctx)
        except Exception:
            logger.exception("completion task %s failed for order %s", name, order.order_no)
            failed.append(name)
    logger.info("completion rewards for order %s settled (%d failed)", order.order_no, len(failed))
    return failed
