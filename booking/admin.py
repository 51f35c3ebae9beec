"""
Django admin registrations for the booking models.

Price snapshots, order logs and the points ledger are read-only here:
they are written by the settlement services and never edited by hand.
"""

from django.contrib import admin

from .models import (
    Campaign,
    ConsumeUpgradeRule,
    CouponGrantRule,
    CouponTemplate,
    Escort,
    EscortReview,
    Hospital,
    MembershipLevel,
    Order,
    OrderLog,
    OrderPriceSnapshot,
    Patient,
    PointRecord,
    PointRule,
    PricingConfig,
    ReferralRecord,
    SeckillItem,
    Service,
    ServiceCategory,
    User,
    UserCoupon,
    UserMembership,
    UserPoint,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'phone', 'is_staff', 'is_superuser')
    list_filter = ('role',)
    search_fields = ('username', 'first_name', 'last_name', 'phone')


@admin.register(PricingConfig)
class PricingConfigAdmin(admin.ModelAdmin):
    list_display = ('id', 'discount_stack_mode', 'points_enabled', 'points_rate', 'points_max_rate', 'min_pay_amount', 'updated_at')


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at')
    search_fields = ('name',)


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'user', 'phone')
    search_fields = ('name', 'phone', 'user__username')


@admin.register(ServiceCategory)
class ServiceCategoryAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'sort')


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'price', 'membership_policy', 'order_count', 'status')
    list_filter = ('membership_policy', 'status', 'category')
    search_fields = ('name',)


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'type', 'status', 'discount_type', 'discount_value', 'start_at', 'end_at', 'sort')
    list_filter = ('type', 'status', 'discount_type')
    search_fields = ('name',)


@admin.register(SeckillItem)
class SeckillItemAdmin(admin.ModelAdmin):
    list_display = ('campaign', 'service', 'stock_total', 'stock_sold', 'per_user_limit', 'status')
    list_filter = ('status',)


@admin.register(CouponTemplate)
class CouponTemplateAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'type', 'value', 'min_amount', 'validity_type', 'status')
    list_filter = ('type', 'status')
    search_fields = ('name',)


@admin.register(UserCoupon)
class UserCouponAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'name', 'type', 'value', 'status', 'expire_at', 'order')
    list_filter = ('status', 'type', 'source')
    search_fields = ('user__username', 'name')


@admin.register(CouponGrantRule)
class CouponGrantRuleAdmin(admin.ModelAdmin):
    list_display = ('id', 'trigger', 'template', 'grant_quantity', 'status')
    list_filter = ('trigger', 'status')


@admin.register(MembershipLevel)
class MembershipLevelAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'discount_rate', 'overtime_fee_waiver', 'sort')


@admin.register(UserMembership)
class UserMembershipAdmin(admin.ModelAdmin):
    list_display = ('user', 'level', 'status', 'expire_at', 'source')
    list_filter = ('status', 'level', 'source')
    search_fields = ('user__username',)


@admin.register(ConsumeUpgradeRule)
class ConsumeUpgradeRuleAdmin(admin.ModelAdmin):
    list_display = ('id', 'level', 'threshold', 'grant_days', 'status')


@admin.register(UserPoint)
class UserPointAdmin(ReadOnlyAdmin):
    list_display = ('user', 'current_points', 'total_points', 'used_points', 'updated_at')
    search_fields = ('user__username',)


@admin.register(PointRecord)
class PointRecordAdmin(ReadOnlyAdmin):
    list_display = ('user', 'type', 'points', 'balance', 'source', 'source_id', 'created_at')
    list_filter = ('type', 'source')
    search_fields = ('user__username', 'source_id')


@admin.register(PointRule)
class PointRuleAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'points', 'points_rate', 'status')


@admin.register(ReferralRecord)
class ReferralRecordAdmin(admin.ModelAdmin):
    list_display = ('inviter', 'invitee', 'status', 'inviter_points', 'rewarded_at')
    list_filter = ('status',)


@admin.register(Escort)
class EscortAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'status', 'work_status', 'rating', 'rating_count', 'order_count', 'daily_order_count')
    list_filter = ('status', 'work_status')
    search_fields = ('name', 'phone')
    readonly_fields = ('rating', 'rating_count')


class OrderLogInline(admin.TabularInline):
    model = OrderLog
    extra = 0
    can_delete = False
    readonly_fields = ('from_status', 'to_status', 'operator', 'remark', 'created_at')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('order_no', 'user', 'service', 'escort', 'status', 'total_amount', 'paid_amount', 'appointment_date', 'created_at')
    list_filter = ('status', 'hospital')
    search_fields = ('order_no', 'user__username', 'transaction_id')
    readonly_fields = ('order_no', 'total_amount', 'discount_amount', 'paid_amount', 'points_used', 'points_discount', 'rewards_settled')
    inlines = [OrderLogInline]


@admin.register(OrderPriceSnapshot)
class OrderPriceSnapshotAdmin(ReadOnlyAdmin):
    list_display = ('order', 'original_price', 'final_price', 'total_savings', 'created_at')
    search_fields = ('order__order_no',)


@admin.register(EscortReview)
class EscortReviewAdmin(admin.ModelAdmin):
    list_display = ('order', 'escort', 'user', 'rating', 'is_visible', 'created_at')
    list_filter = ('rating', 'is_visible')
    search_fields = ('order__order_no', 'escort__name', 'content')
