"""
Database models for the escort booking backend.

The models cover what the pricing engine reads (services, campaigns,
coupons, membership, points), what order settlement writes (orders,
price snapshots, ledgers, counters, transition logs) and what the
rating aggregator recomputes (escort reviews and ratings).  Monetary
values are always ``DecimalField``.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


SCOPE_CHOICES = [
    ('all', 'All services'),
    ('category', 'Service categories'),
    ('service', 'Specific services'),
]


class User(AbstractUser):
    """Account owning patients, orders, coupons and points."""
    ROLE_CHOICES = [
        ('user', 'User'),
        ('escort', 'Escort'),
        ('admin', 'Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='user')
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Hospital(models.Model):
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class Patient(models.Model):
    """A person the booking user books escorts for (就诊人)."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='patients')
    name = models.CharField(max_length=64)
    phone = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.user_id})"


class ServiceCategory(models.Model):
    name = models.CharField(max_length=100)
    sort = models.IntegerField(default=0)

    def __str__(self) -> str:
        return self.name


class Service(models.Model):
    """A bookable escort service.

    ``membership_policy`` controls how the membership stage treats the
    service: ``none`` applies the member rate, ``fixed`` never discounts
    and ``exclusive`` may only be bought by active members.
    """
    POLICY_NONE = 'none'
    POLICY_EXCLUSIVE = 'exclusive'
    POLICY_FIXED = 'fixed'
    POLICY_CHOICES = [
        (POLICY_NONE, 'Member rate applies'),
        (POLICY_EXCLUSIVE, 'Members only'),
        (POLICY_FIXED, 'Fixed price'),
    ]
    category = models.ForeignKey(
        ServiceCategory, null=True, blank=True, on_delete=models.SET_NULL, related_name='services'
    )
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    membership_policy = models.CharField(max_length=16, choices=POLICY_CHOICES, default=POLICY_NONE)
    # 覆盖会员等级折扣率（%），为空时使用等级默认值
    membership_discount = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    membership_overtime_waiver = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    order_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16, default='active')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.price})"


class PricingConfig(models.Model):
    """Global pricing switches.  The most recently created row wins."""
    STACK_MULTIPLY = 'multiply'
    STACK_BEST_OF = 'best-of'
    STACK_CHOICES = [
        (STACK_MULTIPLY, 'Compound discounts'),
        (STACK_BEST_OF, 'Best single discount'),
    ]
    discount_stack_mode = models.CharField(max_length=16, choices=STACK_CHOICES, default=STACK_MULTIPLY)
    coupon_stack_with_member = models.BooleanField(default=True)
    coupon_stack_with_campaign = models.BooleanField(default=True)
    points_enabled = models.BooleanField(default=True)
    points_rate = models.PositiveIntegerField(default=100, help_text="积分兑换比例：多少积分抵扣 1 元")
    points_max_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('10'), help_text="积分最多抵扣的比例（%）"
    )
    min_pay_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.01'))
    show_original_price = models.BooleanField(default=True)
    show_member_price = models.BooleanField(default=True)
    show_savings = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"PricingConfig({self.discount_stack_mode}) @ {self.created_at:%F %T}"


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------

class MembershipLevel(models.Model):
    name = models.CharField(max_length=64)
    discount_rate = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('100'),
        help_text="会员支付比例（%），90 表示九折",
    )
    overtime_fee_waiver = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal('0'), help_text="超时费减免比例（%）"
    )
    sort = models.IntegerField(default=0)

    def __str__(self) -> str:
        return self.name


class UserMembership(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('expired', 'Expired'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='memberships')
    level = models.ForeignKey(MembershipLevel, on_delete=models.PROTECT, related_name='memberships')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='active')
    expire_at = models.DateTimeField()
    source = models.CharField(max_length=20, default='purchase')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'status', 'expire_at'], name='booking_mem_user_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} -> {self.level_id} until {self.expire_at:%F}"


class ConsumeUpgradeRule(models.Model):
    """Grant a membership level once lifetime spend crosses ``threshold``."""
    level = models.ForeignKey(MembershipLevel, on_delete=models.CASCADE, related_name='upgrade_rules')
    threshold = models.DecimalField(max_digits=10, decimal_places=2)
    grant_days = models.PositiveIntegerField(default=365)
    status = models.CharField(max_length=16, default='active')

    def __str__(self) -> str:
        return f"spend {self.threshold} -> {self.level_id}"


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------

class Campaign(models.Model):
    TYPE_CHOICES = [
        ('discount', 'Discount'),
        ('seckill', 'Flash sale'),
    ]
    DISCOUNT_TYPE_CHOICES = [
        ('amount', 'Fixed amount off'),
        ('percent', 'Percent off'),
    ]
    name = models.CharField(max_length=128)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default='discount')
    status = models.CharField(max_length=16, default='active', db_index=True)
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    applicable_scope = models.CharField(max_length=16, choices=SCOPE_CHOICES, default='all')
    applicable_ids = models.JSONField(default=list, blank=True)
    discount_type = models.CharField(max_length=16, choices=DISCOUNT_TYPE_CHOICES)
    # percent 类型：20 表示减 20%
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)
    max_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    sort = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'start_at', 'end_at'], name='booking_camp_window_idx'),
        ]

    def __str__(self) -> str:
        return self.name


class SeckillItem(models.Model):
    """Limited stock of a service sold under a flash-sale campaign."""
    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='seckill_items')
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name='seckill_items')
    stock_total = models.PositiveIntegerField()
    stock_sold = models.PositiveIntegerField(default=0)
    per_user_limit = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=16, default='active')

    class Meta:
        unique_together = [('campaign', 'service')]

    def __str__(self) -> str:
        return f"{self.campaign_id}/{self.service_id} {self.stock_sold}/{self.stock_total}"


class CampaignParticipation(models.Model):
    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='participations')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='campaign_participations')
    order = models.ForeignKey('Order', on_delete=models.CASCADE, related_name='campaign_participations')
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2)
    # true when a flash-sale unit was taken for this order
    stock_reserved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"campaign={self.campaign_id} order={self.order_id}"


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------

COUPON_TYPE_CHOICES = [
    ('amount', 'Fixed amount off'),
    ('percent', 'Percent of price'),
    ('free', 'Free order'),
]


class CouponTemplate(models.Model):
    VALIDITY_CHOICES = [
        ('fixed', 'Fixed window'),
        ('relative', 'Days after grant'),
    ]
    name = models.CharField(max_length=128)
    type = models.CharField(max_length=16, choices=COUPON_TYPE_CHOICES)
    value = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    max_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    min_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    applicable_scope = models.CharField(max_length=16, choices=SCOPE_CHOICES, default='all')
    applicable_ids = models.JSONField(default=list, blank=True)
    member_only = models.BooleanField(default=False)
    stack_with_member = models.BooleanField(default=True)
    stack_with_campaign = models.BooleanField(default=True)
    validity_type = models.CharField(max_length=16, choices=VALIDITY_CHOICES, default='relative')
    start_at = models.DateTimeField(null=True, blank=True)
    end_at = models.DateTimeField(null=True, blank=True)
    valid_days = models.PositiveIntegerField(default=30)
    status = models.CharField(max_length=16, default='active')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class UserCoupon(models.Model):
    """A coupon issued to one user.

    The only legal status change is ``unused -> used`` (stamped with the
    consuming order) or ``unused -> expired``.
    """
    STATUS_UNUSED = 'unused'
    STATUS_USED = 'used'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = [
        (STATUS_UNUSED, 'Unused'),
        (STATUS_USED, 'Used'),
        (STATUS_EXPIRED, 'Expired'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='coupons')
    template = models.ForeignKey(
        CouponTemplate, null=True, blank=True, on_delete=models.SET_NULL, related_name='issued'
    )
    name = models.CharField(max_length=128)
    type = models.CharField(max_length=16, choices=COUPON_TYPE_CHOICES)
    # percent 类型：80 表示按 8 折计算（抵扣 20%）
    value = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    max_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    min_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    applicable_scope = models.CharField(max_length=16, choices=SCOPE_CHOICES, default='all')
    applicable_ids = models.JSONField(default=list, blank=True)
    member_only = models.BooleanField(default=False)
    stack_with_member = models.BooleanField(default=True)
    stack_with_campaign = models.BooleanField(default=True)
    start_at = models.DateTimeField()
    expire_at = models.DateTimeField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_UNUSED, db_index=True)
    order = models.OneToOneField(
        'Order', null=True, blank=True, on_delete=models.SET_NULL, related_name='coupon'
    )
    used_at = models.DateTimeField(null=True, blank=True)
    source = models.CharField(max_length=20, default='claim')
    source_id = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} [{self.status}] -> {self.user_id}"


class CouponGrantRule(models.Model):
    TRIGGER_ORDER_COMPLETE = 'order_complete'
    TRIGGER_CONSUME_MILESTONE = 'consume_milestone'
    TRIGGER_CHOICES = [
        (TRIGGER_ORDER_COMPLETE, 'Order completed'),
        (TRIGGER_CONSUME_MILESTONE, 'Spend milestone'),
    ]
    trigger = models.CharField(max_length=32, choices=TRIGGER_CHOICES)
    template = models.ForeignKey(CouponTemplate, on_delete=models.CASCADE, related_name='grant_rules')
    trigger_config = models.JSONField(default=dict, blank=True)
    grant_quantity = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=16, default='active')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.trigger} -> {self.template_id} x{self.grant_quantity}"


# ---------------------------------------------------------------------------
# Points
# ---------------------------------------------------------------------------

class UserPoint(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='points')
    current_points = models.PositiveIntegerField(default=0)
    total_points = models.PositiveIntegerField(default=0)
    used_points = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.user_id}: {self.current_points}"


class PointRecord(models.Model):
    """Append-only points ledger entry."""
    TYPE_CHOICES = [
        ('earn', 'Earn'),
        ('use', 'Use'),
        ('refund', 'Refund'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='point_records')
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    points = models.IntegerField()
    balance = models.IntegerField()
    source = models.CharField(max_length=32)
    source_id = models.CharField(max_length=64, blank=True)
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'created_at'], name='booking_pt_user_created_idx'),
            models.Index(fields=['source', 'source_id'], name='booking_pt_source_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} {self.type} {self.points:+d} = {self.balance}"


class PointRule(models.Model):
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=64, blank=True)
    points = models.PositiveIntegerField(default=0)
    points_rate = models.DecimalField(max_digits=8, decimal_places=4, default=Decimal('0'))
    status = models.CharField(max_length=16, default='active')

    def __str__(self) -> str:
        return self.code


class ReferralRecord(models.Model):
    STATUS_CHOICES = [
        ('registered', 'Registered'),
        ('rewarded', 'Rewarded'),
    ]
    inviter = models.ForeignKey(User, on_delete=models.CASCADE, related_name='referrals_sent')
    invitee = models.OneToOneField(User, on_delete=models.CASCADE, related_name='referral')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='registered')
    inviter_points = models.PositiveIntegerField(default=0)
    rewarded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.inviter_id} -> {self.invitee_id} ({self.status})"


# ---------------------------------------------------------------------------
# Escorts, orders and reviews
# ---------------------------------------------------------------------------

class Escort(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]
    WORK_STATUS_CHOICES = [
        ('working', 'Accepting orders'),
        ('resting', 'Resting'),
        ('busy', 'Serving'),
    ]
    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='escort_profile'
    )
    name = models.CharField(max_length=64)
    phone = models.CharField(max_length=20, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default='active')
    work_status = models.CharField(max_length=16, choices=WORK_STATUS_CHOICES, default='working')
    rating = models.DecimalField(
        max_digits=2, decimal_places=1, default=Decimal('5.0'),
        validators=[MinValueValidator(Decimal('3.0')), MaxValueValidator(Decimal('5.0'))],
    )
    rating_count = models.PositiveIntegerField(default=0)
    order_count = models.PositiveIntegerField(default=0)
    daily_order_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.rating})"


class Order(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_ASSIGNED = 'assigned'
    STATUS_ARRIVED = 'arrived'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending payment'),
        (STATUS_PAID, 'Paid'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_ASSIGNED, 'Escort assigned'),
        (STATUS_ARRIVED, 'Escort arrived'),
        (STATUS_IN_PROGRESS, 'In service'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    order_no = models.CharField(max_length=32, unique=True)
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='orders')
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='orders')
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name='orders')
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='orders')
    escort = models.ForeignKey(Escort, null=True, blank=True, on_delete=models.SET_NULL, related_name='orders')
    appointment_date = models.DateField()
    # 预约时段，例如 "08:00-12:00"
    appointment_time = models.CharField(max_length=32)
    quantity = models.PositiveIntegerField(default=1)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2)
    campaign = models.ForeignKey(Campaign, null=True, blank=True, on_delete=models.SET_NULL, related_name='orders')
    points_used = models.PositiveIntegerField(default=0)
    points_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_time = models.DateTimeField(null=True, blank=True)
    transaction_id = models.CharField(max_length=64, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    rewards_settled = models.BooleanField(default=False)
    user_remark = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(
                fields=['escort', 'hospital', 'appointment_date', 'appointment_time'],
                name='booking_order_slot_idx',
            ),
            models.Index(fields=['user', 'status'], name='booking_order_user_status_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.order_no} [{self.status}]"


class OrderPriceSnapshot(models.Model):
    """Frozen pricing breakdown taken when the order was created."""
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='price_snapshot')
    original_price = models.DecimalField(max_digits=10, decimal_places=2)
    final_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_savings = models.DecimalField(max_digits=10, decimal_places=2)
    payload = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('price snapshots are immutable')
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"snapshot order={self.order_id} final={self.final_price}"


class OrderLog(models.Model):
    """Records a status transition for an order."""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='logs')
    from_status = models.CharField(max_length=20, null=True, blank=True)
    to_status = models.CharField(max_length=20)
    operator = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='order_logs')
    remark = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.order_id}: {self.from_status} → {self.to_status}"


class EscortReview(models.Model):
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='review')
    escort = models.ForeignKey(Escort, on_delete=models.CASCADE, related_name='reviews')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='escort_reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    content = models.TextField(blank=True)
    is_visible = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['escort', 'is_visible'], name='booking_review_visible_idx'),
        ]

    def __str__(self) -> str:
        return f"review {self.rating}* escort={self.escort_id}"
