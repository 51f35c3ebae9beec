from django.core.management.base import BaseCommand

from booking.models import Escort
from booking.services.rating import recompute_rating


class Command(BaseCommand):
    help = "Recompute escort ratings from their visible reviews."

    def add_arguments(self, parser):
        parser.add_argument('--escort', type=int, default=None, help='Only recompute this escort id')

    def handle(self, *args, **options):
        escort_ids = [options['escort']] if options['escort'] else list(Escort.objects.values_list('id', flat=True))
        for escort_id in escort_ids:
            escort = recompute_rating(escort_id)
            self.stdout.write(f"{escort.name}: {escort.rating} ({escort.rating_count} reviews)")
        self.stdout.write(self.style.SUCCESS(f"Recomputed {len(escort_ids)} escort rating(s)"))
