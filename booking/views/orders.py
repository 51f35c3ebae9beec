"""
Order endpoints.

Users create, view and cancel their own orders.  Operators drive the
fulfilment steps (assign, confirm, arrive, start, complete); an escort
may drive arrive/start/complete for orders assigned to them.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework import status

from ..models import Order
from ..permissions import ADMIN_ROLES, IsAdminRole, IsEscortOrAdmin
from ..serializers.order import AssignEscortSerializer, OrderCancelSerializer, OrderCreateSerializer, order_payload
from ..services import orders as order_service


def _is_operator(user) -> bool:
    return getattr(user, 'role', None) in ADMIN_ROLES or bool(getattr(user, 'is_staff', False))


def _check_escort_scope(user, order_id):
    """Escorts may only act on orders assigned to them."""
    if _is_operator(user):
        return
    order = Order.objects.select_related('escort').filter(id=order_id).first()
    if not order:
        raise NotFound('订单不存在')
    if not order.escort or order.escort.user_id != user.id:
        raise PermissionDenied('只能操作分配给自己的订单')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_order(request):
    s = OrderCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    d = s.validated_data
    order = order_service.create_order(
        request.user,
        service_id=d['serviceId'],
        patient_id=d['patientId'],
        hospital_id=d['hospitalId'],
        appointment_date=d['appointmentDate'],
        appointment_time=d['appointmentTime'],
        quantity=d.get('quantity') or 1,
        escort_id=d.get('escortId'),
        coupon_id=d.get('couponId'),
        campaign_id=d.get('campaignId'),
        points_to_use=d.get('pointsToUse') or 0,
        remark=d.get('remark') or '',
    )
    return Response({'ok': True, 'data': order_payload(order)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, order_id: int):
    order = Order.objects.select_related('price_snapshot').filter(id=order_id).first()
    if not order or (order.user_id != request.user.id and not _is_operator(request.user)):
        raise NotFound('订单不存在')
    data = order_payload(order)
    data['logs'] = [
        {
            'from': log.from_status,
            'to': log.to_status,
            'operator': log.operator.username if log.operator else '',
            'timestamp': log.created_at.strftime('%Y-%m-%d %H:%M'),
            'remark': log.remark,
        }
        for log in order.logs.select_related('operator').order_by('created_at', 'id')
    ]
    return Response({'ok': True, 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_order(request, order_id: int):
    s = OrderCancelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    owner = None if _is_operator(request.user) else request.user
    order = order_service.cancel_order(order_id, user=owner, reason=s.validated_data.get('reason') or '')
    return Response({'ok': True, 'data': order_payload(order)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def assign_order(request, order_id: int):
    s = AssignEscortSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    order = order_service.assign_escort(order_id, s.validated_data['escortId'], operator=request.user)
    return Response({'ok': True, 'data': order_payload(order)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def confirm_order(request, order_id: int):
    order = order_service.confirm_order(order_id, operator=request.user)
    return Response({'ok': True, 'data': order_payload(order)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsEscortOrAdmin])
def arrive_order(request, order_id: int):
    _check_escort_scope(request.user, order_id)
    order = order_service.mark_arrived(order_id, operator=request.user)
    return Response({'ok': True, 'data': order_payload(order)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsEscortOrAdmin])
def start_order(request, order_id: int):
    _check_escort_scope(request.user, order_id)
    order = order_service.start_service(order_id, operator=request.user)
    return Response({'ok': True, 'data': order_payload(order)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsEscortOrAdmin])
def complete_order(request, order_id: int):
    _check_escort_scope(request.user, order_id)
    order = order_service.complete_order(order_id, operator=request.user)
    return Response({'ok': True, 'data': order_payload(order)})
