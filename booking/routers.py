"""
URL mappings for the booking API.

Trailing slashes are omitted, matching ``APPEND_SLASH = False``.
"""
from django.urls import path

from .views import health
from .views.orders import (
    arrive_order,
    assign_order,
    cancel_order,
    complete_order,
    confirm_order,
    create_order,
    order_detail,
    start_order,
)
from .views.payment import payment_notify
from .views.pricing import price_preview, pricing_config
from .views.reviews import review_order, review_visibility


urlpatterns = [
    path('healthz', health.healthz),
    # Pricing
    path('api/pricing/preview', price_preview),
    path('api/admin/pricing/config', pricing_config),
    # Orders
    path('api/orders', create_order),
    path('api/orders/<int:order_id>', order_detail),
    path('api/orders/<int:order_id>/cancel', cancel_order),
    path('api/orders/<int:order_id>/review', review_order),
    # Payment callback
    path('api/payment/notify', payment_notify),
    # 派单与服务进度
    path('api/admin/orders/<int:order_id>/assign', assign_order),
    path('api/admin/orders/<int:order_id>/confirm', confirm_order),
    path('api/admin/orders/<int:order_id>/arrive', arrive_order),
    path('api/admin/orders/<int:order_id>/start', start_order),
    path('api/admin/orders/<int:order_id>/complete', complete_order),
    # Review moderation
    path('api/admin/reviews/<int:review_id>/visibility', review_visibility),
]
