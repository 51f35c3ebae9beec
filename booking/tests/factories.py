"""Small builders shared by the booking tests."""
from __future__ import annotations

import datetime
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from booking.models import (
    Campaign,
    Escort,
    Hospital,
    MembershipLevel,
    Patient,
    PricingConfig,
    Service,
    ServiceCategory,
    User,
    UserCoupon,
    UserMembership,
    UserPoint,
)

APPOINTMENT_DATE = datetime.date(2030, 5, 20)
MORNING = '08:00-12:00'
AFTERNOON = '13:00-17:00'


def make_user(username='buyer', **kw) -> User:
    return User.objects.create_user(username=username, password='P@ssw0rd1', **kw)


def make_patient(user: User, name='王阿姨') -> Patient:
    return Patient.objects.create(user=user, name=name, phone='13800000001')


def make_hospital(name='市第一人民医院') -> Hospital:
    return Hospital.objects.create(name=name)


def make_service(price='100.00', category=None, **kw) -> Service:
    if category is None:
        category = ServiceCategory.objects.create(name='门诊陪诊')
    return Service.objects.create(name=kw.pop('name', '全程陪诊'), price=Decimal(price), category=category, **kw)


def make_escort(name='李师傅', **kw) -> Escort:
    return Escort.objects.create(name=name, phone='13900000000', **kw)


def make_config(**kw) -> PricingConfig:
    return PricingConfig.objects.create(**kw)


def make_level(rate='90', waiver='0', name='金卡会员') -> MembershipLevel:
    return MembershipLevel.objects.create(name=name, discount_rate=Decimal(rate), overtime_fee_waiver=Decimal(waiver))


def make_membership(user: User, level: MembershipLevel, days=30) -> UserMembership:
    return UserMembership.objects.create(user=user, level=level, expire_at=timezone.now() + timedelta(days=days))


def make_campaign(discount_type='amount', value='20', **kw) -> Campaign:
    now = timezone.now()
    kw.setdefault('start_at', now - timedelta(days=1))
    kw.setdefault('end_at', now + timedelta(days=1))
    return Campaign.objects.create(
        name=kw.pop('name', '春季特惠'),
        discount_type=discount_type,
        discount_value=Decimal(value),
        **kw,
    )


def make_coupon(user: User, coupon_type='amount', value='5', **kw) -> UserCoupon:
    now = timezone.now()
    kw.setdefault('start_at', now - timedelta(days=1))
    kw.setdefault('expire_at', now + timedelta(days=7))
    return UserCoupon.objects.create(
        user=user,
        name=kw.pop('name', '新人券'),
        type=coupon_type,
        value=Decimal(value),
        **kw,
    )


def give_points(user: User, points: int) -> UserPoint:
    return UserPoint.objects.create(user=user, current_points=points, total_points=points)
