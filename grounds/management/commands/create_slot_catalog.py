from django.core.management.base import BaseCommand

from grounds.catalog import create_catalog
from grounds.models import Ground


class Command(BaseCommand):
    help = 'Create the fixed slot catalog for grounds that do not have one yet'

    def add_arguments(self, parser):
        parser.add_argument('--ground', type=int, help='Only this ground id', default=None)
        parser.add_argument('--dry-run', action='store_true', help='Show actions without creating slots')

    def handle(self, *args, **options):
        grounds = Ground.objects.all().order_by('id')
        if options['ground']:
            grounds = grounds.filter(pk=options['ground'])
            if not grounds.exists():
                self.stdout.write(self.style.ERROR(f"Ground not found: {options['ground']}"))
                return

        created = 0
        for ground in grounds:
            if ground.slot_times.exists():
                self.stdout.write(self.style.NOTICE(f'Catalog already present for ground {ground.name}'))
                continue

            if options['dry_run']:
                self.stdout.write(f'Would create catalog for ground {ground.name}')
                created += 1
                continue

            slots = create_catalog(ground)
            self.stdout.write(self.style.SUCCESS(f'Created {len(slots)} slots for ground {ground.name}'))
            created += 1

        self.stdout.write(self.style.SUCCESS(f'Done. {created} grounds updated.'))
