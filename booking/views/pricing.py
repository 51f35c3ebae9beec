"""
Price preview and pricing configuration endpoints.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdminRole
from ..serializers.pricing import PricePreviewSerializer, PricingConfigUpdateSerializer
from ..services.pricing import load_pricing_config, preview, update_pricing_config


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def price_preview(request):
    s = PricePreviewSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    data = preview(
        d['serviceId'],
        user=request.user,
        quantity=d.get('quantity') or 1,
        coupon_id=d.get('couponId'),
        campaign_id=d.get('campaignId'),
        points_to_use=d.get('pointsToUse') or 0,
    )
    return Response({'ok': True, 'data': data})


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsAdminRole])
def pricing_config(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': load_pricing_config().as_dict()})
    s = PricingConfigUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    snapshot = update_pricing_config(**s.validated_data)
    return Response({'ok': True, 'data': snapshot.as_dict()})
