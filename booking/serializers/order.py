import bleach
from rest_framework import serializers

from ..models import Order


class OrderCreateSerializer(serializers.Serializer):
    serviceId = serializers.IntegerField(min_value=1)
    patientId = serializers.IntegerField(min_value=1)
    hospitalId = serializers.IntegerField(min_value=1)
    appointmentDate = serializers.DateField()
    appointmentTime = serializers.CharField(max_length=32)
    quantity = serializers.IntegerField(required=False, min_value=1, max_value=99, default=1)
    escortId = serializers.IntegerField(required=False, allow_null=True)
    couponId = serializers.IntegerField(required=False, allow_null=True)
    campaignId = serializers.IntegerField(required=False, allow_null=True)
    pointsToUse = serializers.IntegerField(required=False, min_value=0, default=0)
    remark = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')

    def validate_appointmentTime(self, v):
        return bleach.clean((v or '').strip(), tags=set(), strip=True)

    def validate_remark(self, v):
        return bleach.clean((v or '').strip(), tags=set(), strip=True)


class OrderCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')

    def validate_reason(self, v):
        return bleach.clean((v or '').strip(), tags=set(), strip=True)


class PaymentNotifySerializer(serializers.Serializer):
    orderNo = serializers.CharField(max_length=32)
    transactionId = serializers.CharField(max_length=64)


class AssignEscortSerializer(serializers.Serializer):
    escortId = serializers.IntegerField(min_value=1)


def order_payload(order: Order) -> dict:
    snapshot = getattr(order, 'price_snapshot', None)
    return {
        'id': order.id,
        'orderNo': order.order_no,
        'status': order.status,
        'serviceId': order.service_id,
        'patientId': order.patient_id,
        'hospitalId': order.hospital_id,
        'escortId': order.escort_id,
        'appointmentDate': order.appointment_date.isoformat() if order.appointment_date else None,
        'appointmentTime': order.appointment_time,
        'quantity': order.quantity,
        'totalAmount': str(order.total_amount),
        'discountAmount': str(order.discount_amount),
        'paidAmount': str(order.paid_amount),
        'pointsUsed': order.points_used,
        'pointsDiscount': str(order.points_discount),
        'campaignId': order.campaign_id,
        'paymentTime': order.payment_time.strftime('%Y-%m-%d %H:%M:%S') if order.payment_time else None,
        'cancelReason': order.cancel_reason,
        'completedAt': order.completed_at.strftime('%Y-%m-%d %H:%M:%S') if order.completed_at else None,
        'remark': order.user_remark,
        'priceSnapshot': snapshot.payload if snapshot else None,
    }
