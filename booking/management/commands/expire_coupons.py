from django.core.management.base import BaseCommand
from django.utils import timezone

from booking.models import UserCoupon


class Command(BaseCommand):
    help = "Mark unused coupons past their expiry time as expired."

    def handle(self, *args, **options):
        now = timezone.now()
        updated = UserCoupon.objects.filter(
            status=UserCoupon.STATUS_UNUSED, expire_at__lt=now
        ).update(status=UserCoupon.STATUS_EXPIRED)
        self.stdout.write(self.style.SUCCESS(f"Expired {updated} coupon(s) at {now}"))
