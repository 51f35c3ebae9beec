from rest_framework import serializers

from ..models import PricingConfig


class PricePreviewSerializer(serializers.Serializer):
    serviceId = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(required=False, min_value=1, max_value=99, default=1)
    couponId = serializers.IntegerField(required=False, allow_null=True)
    campaignId = serializers.IntegerField(required=False, allow_null=True)
    pointsToUse = serializers.IntegerField(required=False, min_value=0, default=0)


class PricingConfigUpdateSerializer(serializers.Serializer):
    """Partial update of the pricing switches; keys mirror the read payload."""
    discountStackMode = serializers.ChoiceField(
        choices=[c for c, _ in PricingConfig.STACK_CHOICES], required=False, source='discount_stack_mode'
    )
    couponStackWithMember = serializers.BooleanField(required=False, source='coupon_stack_with_member')
    couponStackWithCampaign = serializers.BooleanField(required=False, source='coupon_stack_with_campaign')
    pointsEnabled = serializers.BooleanField(required=False, source='points_enabled')
    pointsRate = serializers.IntegerField(required=False, min_value=1, source='points_rate')
    pointsMaxRate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False, source='points_max_rate'
    )
    minPayAmount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, source='min_pay_amount'
    )
    showOriginalPrice = serializers.BooleanField(required=False, source='show_original_price')
    showMemberPrice = serializers.BooleanField(required=False, source='show_member_price')
    showSavings = serializers.BooleanField(required=False, source='show_savings')
