from django.core.management.base import BaseCommand
from django.utils import timezone

from booking.models import Escort


class Command(BaseCommand):
    help = "Reset every escort's daily order counter; run once a day after midnight."

    def handle(self, *args, **options):
        updated = Escort.objects.exclude(daily_order_count=0).update(daily_order_count=0)
        self.stdout.write(self.style.SUCCESS(f"Reset daily order count for {updated} escort(s) at {timezone.now()}"))
