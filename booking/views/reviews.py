from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from ..permissions import IsAdminRole
from ..serializers.review import ReviewCreateSerializer, ReviewVisibilitySerializer
from ..services.rating import record_review, set_review_visibility


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def review_order(request, order_id: int):
    s = ReviewCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    review = record_review(order_id, request.user, s.validated_data['rating'], s.validated_data.get('content') or '')
    return Response(
        {'ok': True, 'data': {'id': review.id, 'orderId': review.order_id, 'escortId': review.escort_id,
                              'rating': review.rating, 'content': review.content}},
        status=status.HTTP_201_CREATED,
    )


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def review_visibility(request, review_id: int):
    s = ReviewVisibilitySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    review = set_review_visibility(review_id, s.validated_data['visible'])
    return Response({'ok': True, 'data': {'id': review.id, 'visible': review.is_visible}})
