"""
Integration tests for the booking API.

These tests drive the HTTP surface end to end: price preview, order
creation and cancellation, the payment callback, the fulfilment steps,
reviews and the error envelope.  They use Django REST framework's
APIClient within the APITestCase base class.
"""

from decimal import Decimal

from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import Escort, Order, OrderLog, PricingConfig, User
from .factories import (
    APPOINTMENT_DATE,
    MORNING,
    make_campaign,
    make_coupon,
    make_hospital,
    make_level,
    make_membership,
    make_patient,
    make_service,
)


class BookingAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(username='buyer', password='P@ssw0rd1', role='user')
        self.admin_user = User.objects.create_user(username='ops', password='P@ssw0rd1', role='admin')
        self.escort_user = User.objects.create_user(username='escort1', password='P@ssw0rd1', role='escort')
        self.escort = Escort.objects.create(name='李师傅', user=self.escort_user)
        self.patient = make_patient(self.user)
        self.hospital = make_hospital()
        self.service = make_service()

        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.admin_client = APIClient()
        self.admin_client.force_authenticate(user=self.admin_user)
        self.escort_client = APIClient()
        self.escort_client.force_authenticate(user=self.escort_user)

    def _order_body(self, **extra):
        body = {
            'serviceId': self.service.id,
            'patientId': self.patient.id,
            'hospitalId': self.hospital.id,
            'appointmentDate': APPOINTMENT_DATE.isoformat(),
            'appointmentTime': MORNING,
        }
        body.update(extra)
        return body

    def _create_order(self, **extra):
        resp = self.client.post('/api/orders', self._order_body(**extra), format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return resp.data['data']

    def test_preview_returns_layered_breakdown(self):
        make_campaign('amount', '20')
        make_membership(self.user, make_level(rate='90'))
        coupon = make_coupon(self.user, 'amount', '5')

        resp = self.client.post(
            '/api/pricing/preview', {'serviceId': self.service.id, 'couponId': coupon.id}, format='json'
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.data['data']
        self.assertEqual(Decimal(data['campaignPrice']), Decimal('80'))
        self.assertEqual(Decimal(data['memberPrice']), Decimal('72'))
        self.assertEqual(Decimal(data['finalPrice']), Decimal('67'))
        self.assertEqual(Decimal(data['totalSavings']), Decimal('33'))
        self.assertTrue(data['isMember'])
        self.assertEqual(Decimal(data['memberDiscountRate']), Decimal('8'))

    def test_preview_requires_authentication(self):
        resp = APIClient().post('/api/pricing/preview', {'serviceId': self.service.id}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(resp.data['ok'])

    def test_unknown_service_uses_error_envelope(self):
        resp = self.client.post('/api/pricing/preview', {'serviceId': 424242}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_create_view_and_cancel_order(self):
        created = self._create_order(remark='<b>请准时</b>')
        self.assertEqual(created['status'], 'pending')
        self.assertEqual(created['remark'], '请准时')
        self.assertEqual(Decimal(created['priceSnapshot']['finalPrice']), Decimal('100'))

        detail = self.client.get(f"/api/orders/{created['id']}")
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(detail.data['data']['orderNo'], created['orderNo'])

        resp = self.client.post(f"/api/orders/{created['id']}/cancel", {'reason': '<i>改期</i>'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['status'], 'cancelled')
        self.assertEqual(resp.data['data']['cancelReason'], '改期')

    def test_other_users_cannot_see_the_order(self):
        created = self._create_order()
        stranger = User.objects.create_user(username='stranger', password='P@ssw0rd1')
        client = APIClient()
        client.force_authenticate(user=stranger)
        self.assertEqual(client.get(f"/api/orders/{created['id']}").status_code, status.HTTP_404_NOT_FOUND)

    def test_slot_conflict_is_409(self):
        self._create_order(escortId=self.escort.id)
        resp = self.client.post('/api/orders', self._order_body(escortId=self.escort.id), format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error']['code'], 'conflict')
        self.assertEqual(Order.objects.count(), 1)

    def test_invalid_payload_is_400(self):
        resp = self.client.post('/api/orders', {'serviceId': self.service.id}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(resp.data['ok'])

    def test_payment_notify_is_open_and_idempotent(self):
        created = self._create_order()
        body = {'orderNo': created['orderNo'], 'transactionId': 'WX9001'}
        anonymous = APIClient()

        first = anonymous.post('/api/payment/notify', body, format='json')
        second = anonymous.post('/api/payment/notify', body, format='json')

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data['data']['status'], 'paid')
        self.assertEqual(OrderLog.objects.filter(order_id=created['id'], to_status='paid').count(), 1)

    def test_fulfilment_and_review(self):
        created = self._create_order()
        order_id = created['id']
        self.client.post('/api/payment/notify', {'orderNo': created['orderNo'], 'transactionId': 'WX9002'}, format='json')

        resp = self.client.post(f'/api/admin/orders/{order_id}/confirm', format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.assertEqual(self.admin_client.post(f'/api/admin/orders/{order_id}/confirm', format='json').status_code, 200)
        resp = self.admin_client.post(f'/api/admin/orders/{order_id}/assign', {'escortId': self.escort.id}, format='json')
        self.assertEqual(resp.data['data']['status'], 'assigned')
        self.assertEqual(self.escort_client.post(f'/api/admin/orders/{order_id}/arrive', format='json').status_code, 200)
        self.assertEqual(self.escort_client.post(f'/api/admin/orders/{order_id}/start', format='json').status_code, 200)
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.escort_client.post(f'/api/admin/orders/{order_id}/complete', format='json')
        self.assertEqual(resp.data['data']['status'], 'completed')
        self.assertTrue(Order.objects.get(id=order_id).rewards_settled)

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.post(f'/api/orders/{order_id}/review', {'rating': 5, 'content': '<p>很专业</p>'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['data']['content'], '很专业')
        self.escort.refresh_from_db()
        self.assertEqual(self.escort.rating_count, 1)
        self.assertEqual(self.escort.rating, Decimal('4.7'))

        resp = self.admin_client.post(f"/api/admin/reviews/{resp.data['data']['id']}/visibility", {'visible': False}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_escort_cannot_drive_someone_elses_order(self):
        other = Escort.objects.create(name='王师傅')
        created = self._create_order(escortId=other.id)
        resp = self.escort_client.post(f"/api/admin/orders/{created['id']}/arrive", format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_pricing_config_admin(self):
        resp = self.admin_client.get('/api/admin/pricing/config')
        self.assertEqual(resp.data['data']['discountStackMode'], 'multiply')

        resp = self.admin_client.put(
            '/api/admin/pricing/config', {'discountStackMode': 'best-of', 'pointsRate': 50}, format='json'
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['data']['discountStackMode'], 'best-of')
        self.assertEqual(PricingConfig.objects.get().points_rate, 50)

        resp = self.client.put('/api/admin/pricing/config', {'pointsRate': 1}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_healthz(self):
        resp = APIClient().get('/healthz')
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['ok'])
