"""
Layered price quoting for escort services.

A quote walks a fixed pipeline over the base price: campaign, membership,
coupon, points and finally the minimum-payable floor.  How the campaign
and membership stages combine is decided once per quote by the stack
mode of the pricing configuration:

* ``multiply``: every stage discounts the running price of the previous one.
* ``best-of``: campaign and member prices are both computed from the
  base price and only the lower one is kept.

Quoting never writes.  Order creation calls :func:`quote` inside its own
transaction and freezes the result as the order's price snapshot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_CEILING, ROUND_DOWN, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from ..models import Campaign, PricingConfig, Service, User, UserCoupon, UserMembership, UserPoint
from .marketing import get_active_membership

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
CENT = Decimal('0.01')
HUNDRED = Decimal('100')


class StackMode(str, Enum):
    MULTIPLY = 'multiply'
    BEST_OF = 'best-of'


@dataclass(frozen=True)
class PricingConfigSnapshot:
    """Immutable copy of the pricing configuration read for one request."""
    stack_mode: StackMode = StackMode.MULTIPLY
    coupon_stack_with_member: bool = True
    coupon_stack_with_campaign: bool = True
    points_enabled: bool = True
    points_rate: int = 100
    points_max_rate: Decimal = Decimal('10')
    min_pay_amount: Decimal = Decimal('0.01')
    show_original_price: bool = True
    show_member_price: bool = True
    show_savings: bool = True

    @classmethod
    def from_model(cls, row: PricingConfig) -> 'PricingConfigSnapshot':
        return cls(
            stack_mode=StackMode(row.discount_stack_mode),
            coupon_stack_with_member=row.coupon_stack_with_member,
            coupon_stack_with_campaign=row.coupon_stack_with_campaign,
            points_enabled=row.points_enabled,
            points_rate=row.points_rate or 100,
            points_max_rate=Decimal(row.points_max_rate),
            min_pay_amount=Decimal(row.min_pay_amount),
            show_original_price=row.show_original_price,
            show_member_price=row.show_member_price,
            show_savings=row.show_savings,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            'discountStackMode': self.stack_mode.value,
            'couponStackWithMember': self.coupon_stack_with_member,
            'couponStackWithCampaign': self.coupon_stack_with_campaign,
            'pointsEnabled': self.points_enabled,
            'pointsRate': self.points_rate,
            'pointsMaxRate': str(self.points_max_rate),
            'minPayAmount': str(self.min_pay_amount),
            'showOriginalPrice': self.show_original_price,
            'showMemberPrice': self.show_member_price,
            'showSavings': self.show_savings,
        }


def _latest_config_row() -> PricingConfig:
    row = PricingConfig.objects.order_by('-created_at', '-id').first()
    if row is None:
        row = PricingConfig.objects.create()
        logger.info("created default pricing config %s", row.pk)
    return row


def load_pricing_config() -> PricingConfigSnapshot:
    return PricingConfigSnapshot.from_model(_latest_config_row())


def update_pricing_config(**fields) -> PricingConfigSnapshot:
    """Update the current configuration row with model field values."""
    row = _latest_config_row()
    for name, value in fields.items():
        setattr(row, name, value)
    row.save()
    logger.info("pricing config %s updated: %s", row.pk, sorted(fields))
    return PricingConfigSnapshot.from_model(row)


@dataclass
class PriceBreakdown:
    original_price: Decimal
    quantity: int = 1
    service_id: Optional[int] = None
    service_name: str = ''
    campaign_price: Optional[Decimal] = None
    campaign_discount: Decimal = ZERO
    campaign_id: Optional[int] = None
    campaign_name: Optional[str] = None
    member_price: Optional[Decimal] = None
    member_discount: Decimal = ZERO
    member_level_name: Optional[str] = None
    coupon_price: Optional[Decimal] = None
    coupon_discount: Decimal = ZERO
    coupon_id: Optional[int] = None
    coupon_name: Optional[str] = None
    points_used: int = 0
    points_discount: Decimal = ZERO
    final_price: Decimal = ZERO
    total_savings: Decimal = ZERO
    overtime_waiver_rate: Decimal = ZERO
    calculated_at: Optional[datetime] = None

    def as_snapshot(self) -> Dict[str, Any]:
        """JSON-safe form stored on the order; decimals are kept as strings."""
        def money(v: Optional[Decimal]) -> Optional[str]:
            return None if v is None else str(v)

        return {
            'serviceId': self.service_id,
            'serviceName': self.service_name,
            'quantity': self.quantity,
            'originalPrice': money(self.original_price),
            'campaignPrice': money(self.campaign_price),
            'campaignDiscount': money(self.campaign_discount),
            'campaignId': self.campaign_id,
            'campaignName': self.campaign_name,
            'memberPrice': money(self.member_price),
            'memberDiscount': money(self.member_discount),
            'memberLevelName': self.member_level_name,
            'couponPrice': money(self.coupon_price),
            'couponDiscount': money(self.coupon_discount),
            'couponId': self.coupon_id,
            'couponName': self.coupon_name,
            'pointsUsed': self.points_used,
            'pointsDiscount': money(self.points_discount),
            'finalPrice': money(self.final_price),
            'totalSavings': money(self.total_savings),
            'overtimeWaiverRate': money(self.overtime_waiver_rate),
            'calculatedAt': self.calculated_at.isoformat() if self.calculated_at else None,
        }


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _floor_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_DOWN)


def _in_scope(scope: str, ids: Iterable, service: Service) -> bool:
    if scope == 'all':
        return True
    wanted = {str(i) for i in (ids or [])}
    if scope == 'category':
        return service.category_id is not None and str(service.category_id) in wanted
    if scope == 'service':
        return str(service.id) in wanted
    return False


def campaign_applies(campaign: Campaign, service: Service, now: datetime) -> bool:
    if campaign.status != 'active' or campaign.start_at > now or campaign.end_at < now:
        return False
    return _in_scope(campaign.applicable_scope, campaign.applicable_ids, service)


def find_active_campaign(service: Service, now: datetime) -> Optional[Campaign]:
    """Highest-sorted running campaign covering the service."""
    candidates = Campaign.objects.filter(status='active', start_at__lte=now, end_at__gte=now).order_by('-sort', 'id')
    for campaign in candidates:
        if _in_scope(campaign.applicable_scope, campaign.applicable_ids, service):
            return campaign
    return None


def apply_campaign_discount(price: Decimal, campaign: Campaign) -> Decimal:
    value = Decimal(campaign.discount_value)
    if campaign.discount_type == 'amount':
        return max(price - value, ZERO)
    if campaign.discount_type == 'percent':
        discounted = price * (HUNDRED - value) / HUNDRED
        if campaign.max_discount is not None:
            return max(price - Decimal(campaign.max_discount), discounted)
        return discounted
    return price


def coupon_usable(
    coupon: UserCoupon,
    *,
    price: Decimal,
    service: Service,
    membership: Optional[UserMembership],
    config: PricingConfigSnapshot,
    campaign_applied: bool,
) -> bool:
    if Decimal(coupon.min_amount) > price:
        return False
    if not _in_scope(coupon.applicable_scope, coupon.applicable_ids, service):
        return False
    if coupon.member_only and membership is None:
        return False
    if membership is not None and not (coupon.stack_with_member and config.coupon_stack_with_member):
        return False
    if not coupon.stack_with_campaign and config.stack_mode is StackMode.MULTIPLY:
        return False
    if campaign_applied and not config.coupon_stack_with_campaign:
        return False
    return True


def coupon_discount(coupon: UserCoupon, price: Decimal) -> Decimal:
    """Amount the coupon takes off ``price``; never more than ``price``."""
    if coupon.type == 'amount':
        return min(Decimal(coupon.value), price)
    if coupon.type == 'percent':
        # value is the share paid: 80 means 20% off
        discount = price * (HUNDRED - Decimal(coupon.value)) / HUNDRED
        if coupon.max_discount is not None:
            discount = min(discount, Decimal(coupon.max_discount))
        return max(min(discount, price), ZERO)
    if coupon.type == 'free':
        return price
    return ZERO


def overtime_waiver_rate(service: Service, membership: Optional[UserMembership]) -> Decimal:
    if membership is None:
        return ZERO
    if service.membership_overtime_waiver is not None:
        return Decimal(service.membership_overtime_waiver)
    return Decimal(membership.level.overtime_fee_waiver)


def _user_balance(user: Optional[User]) -> int:
    if user is None:
        return 0
    account = UserPoint.objects.filter(user=user).first()
    return account.current_points if account else 0


def quote(
    service_id,
    quantity: int = 1,
    user: Optional[User] = None,
    coupon_id=None,
    campaign_id=None,
    points_to_use: int = 0,
    config: Optional[PricingConfigSnapshot] = None,
    now: Optional[datetime] = None,
) -> PriceBreakdown:
    """Price ``quantity`` units of a service for ``user``.

    Raises ``NotFound`` for an unknown service and ``ValidationError``
    for a members-only service quoted without an active membership.
    Coupons that do not qualify are ignored rather than rejected.
    """
    config = config or load_pricing_config()
    now = now or timezone.now()
    if quantity < 1:
        raise ValidationError('购买数量必须大于 0')

    service = Service.objects.select_related('category').filter(id=service_id).first()
    if service is None:
        raise NotFound('服务不存在')

    membership = get_active_membership(user, now=now)
    if service.membership_policy == Service.POLICY_EXCLUSIVE and membership is None:
        raise ValidationError('该服务仅限会员购买')

    mode = config.stack_mode
    original = _cents(Decimal(service.price) * quantity)
    bd = PriceBreakdown(
        original_price=original,
        quantity=quantity,
        service_id=service.id,
        service_name=service.name,
        calculated_at=now,
    )
    current = original

    # campaign
    if campaign_id:
        campaign = Campaign.objects.filter(id=campaign_id).first()
    else:
        campaign = find_active_campaign(service, now)
    if campaign is not None and campaign_applies(campaign, service, now):
        campaign_price = _cents(apply_campaign_discount(original, campaign))
        if mode is StackMode.MULTIPLY or campaign_price < original:
            bd.campaign_price = campaign_price
            bd.campaign_discount = original - campaign_price
            bd.campaign_id = campaign.id
            bd.campaign_name = campaign.name
            current = campaign_price

    # membership
    if membership is not None:
        bd.member_level_name = membership.level.name
    if membership is not None and service.membership_policy != Service.POLICY_FIXED:
        rate = service.membership_discount
        if rate is None:
            rate = membership.level.discount_rate
        rate = Decimal(rate)
        if mode is StackMode.MULTIPLY:
            member_price = _cents(current * rate / HUNDRED)
            bd.member_price = member_price
            bd.member_discount = current - member_price
            current = member_price
        else:
            member_price = _cents(original * rate / HUNDRED)
            if bd.campaign_price is None or member_price < bd.campaign_price:
                bd.member_price = member_price
                bd.member_discount = original - member_price
                # the member price replaces the campaign price entirely
                bd.campaign_price = None
                bd.campaign_discount = ZERO
                bd.campaign_id = None
                bd.campaign_name = None
                current = member_price

    # coupon
    if coupon_id and user is not None:
        coupon = UserCoupon.objects.filter(
            id=coupon_id, user=user, status=UserCoupon.STATUS_UNUSED, start_at__lte=now, expire_at__gte=now
        ).first()
        if coupon is not None and coupon_usable(
            coupon,
            price=current,
            service=service,
            membership=membership,
            config=config,
            campaign_applied=bd.campaign_id is not None,
        ):
            discount = _cents(coupon_discount(coupon, current))
            bd.coupon_discount = discount
            bd.coupon_id = coupon.id
            bd.coupon_name = coupon.name
            current = current - discount
            bd.coupon_price = current

    # points
    balance = _user_balance(user) if points_to_use and points_to_use > 0 else 0
    if config.points_enabled and points_to_use and points_to_use > 0 and balance > 0:
        rate = Decimal(config.points_rate)
        available = min(
            _floor_cents(current * config.points_max_rate / HUNDRED),
            _floor_cents(Decimal(points_to_use) / rate),
            _floor_cents(current - config.min_pay_amount),
            _floor_cents(Decimal(balance) / rate),
        )
        if available > ZERO:
            bd.points_discount = available
            bd.points_used = int((available * rate).to_integral_value(rounding=ROUND_CEILING))
            current = current - available

    # floor
    bd.final_price = max(current, config.min_pay_amount)
    bd.total_savings = original - bd.final_price
    bd.overtime_waiver_rate = overtime_waiver_rate(service, membership)
    return bd


def preview(
    service_id,
    *,
    user: Optional[User] = None,
    quantity: int = 1,
    coupon_id=None,
    campaign_id=None,
    points_to_use: int = 0,
) -> Dict[str, Any]:
    """Quote for display: the breakdown plus membership facts and display flags."""
    config = load_pricing_config()
    now = timezone.now()
    bd = quote(
        service_id,
        quantity=quantity,
        user=user,
        coupon_id=coupon_id,
        campaign_id=campaign_id,
        points_to_use=points_to_use,
        config=config,
        now=now,
    )
    membership = get_active_membership(user, now=now)
    member_rate = ZERO
    if bd.member_discount and bd.original_price:
        member_rate = _cents(bd.member_discount / bd.original_price * HUNDRED)
    data = bd.as_snapshot()
    data.update({
        'memberDiscountRate': str(member_rate),
        'isMember': membership is not None,
        'membershipExpireAt': membership.expire_at.isoformat() if membership else None,
        'display': {
            'showOriginalPrice': config.show_original_price,
            'showMemberPrice': config.show_member_price,
            'showSavings': config.show_savings,
        },
    })
    return data
