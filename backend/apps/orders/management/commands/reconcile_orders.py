"""
Management command to heal orders stuck behind the escrow gate.
Advances fully funded AWAITING_ESCROW orders and lists completed orders
that have no settlement record.

Usage:
    python manage.py reconcile_orders --dry-run  # Preview
    python manage.py reconcile_orders            # Execute
"""
from django.core.management.base import BaseCommand

from apps.orders.services.reconciliation import reconcile_stuck_orders


class Command(BaseCommand):
    help = 'Advance fully funded orders stuck in AWAITING_ESCROW'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Preview repairs without changing any order',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        report = reconcile_stuck_orders(dry_run=dry_run)

        if dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f'DRY RUN: Would advance {len(report.healed)} stuck orders'
                )
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(f'Advanced {len(report.healed)} stuck orders')
            )

        for order_id in report.healed[:10]:
            self.stdout.write(f'  - {order_id}')
        if len(report.healed) > 10:
            self.stdout.write(f'  ... and {len(report.healed) - 10} more')

        if report.unsettled:
            self.stdout.write(
                self.style.ERROR(
                    f'{len(report.unsettled)} completed orders have no settlement record:'
                )
            )
            for order_id in report.unsettled:
                self.stdout.write(f'  - {order_id}')
