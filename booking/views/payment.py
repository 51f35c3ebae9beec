"""
Payment gateway callback.

The gateway calls this endpoint without a user session, possibly more
than once for the same payment; :func:`mark_paid` treats repeats as
no-ops.  Signature verification belongs to the gateway integration and
is not done here.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from ..serializers.order import PaymentNotifySerializer
from ..services.orders import mark_paid


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def payment_notify(request):
    s = PaymentNotifySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    order = mark_paid(s.validated_data['orderNo'], s.validated_data['transactionId'])
    return Response({'ok': True, 'data': {'orderNo': order.order_no, 'status': order.status}})
