"""
Management command for batch registration approval.

    --all                       approve every pending_payment / payment_submitted account
    --with-active-subscription  approve payment_submitted accounts that already look paid

Runs as the admin given by --actor, which needs the user_management permission.
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from accounts.registration import (
    SUBMITTED_WITH_ACTIVE_SUBSCRIPTION,
    UNAPPROVED,
    approve_all_unapproved,
    approve_submitted_with_active_subscription,
)
from core.exceptions import MembershipError

User = get_user_model()


class Command(BaseCommand):
    help = 'Approve pending registrations in bulk'

    def add_arguments(self, parser):
        scope = parser.add_mutually_exclusive_group(required=True)
        scope.add_argument(
            '--all',
            action='store_true',
            help='Approve every account not yet approved or rejected',
        )
        scope.add_argument(
            '--with-active-subscription',
            action='store_true',
            help='Approve payment_submitted accounts with an active or paid-tier subscription',
        )
        parser.add_argument(
            '--actor',
            required=True,
            help='Email of the admin performing the approval',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many accounts would be approved without changing anything',
        )

    def handle(self, *args, **options):
        actor = User.objects.filter(email=User.objects.normalize_email(options['actor'])).first()
        if actor is None:
            raise CommandError(f"No account for {options['actor']}")

        if options['all']:
            predicate = UNAPPROVED
            approve = approve_all_unapproved
        else:
            predicate = SUBMITTED_WITH_ACTIVE_SUBSCRIPTION
            approve = approve_submitted_with_active_subscription

        if options['dry_run']:
            count = User.objects.filter(predicate).count()
            self.stdout.write(self.style.WARNING(f"DRY RUN - {count} accounts would be approved"))
            return

        try:
            count = approve(actor)
        except MembershipError as exc:
            raise CommandError(exc.message)

        if count:
            self.stdout.write(self.style.SUCCESS(f"Approved {count} accounts"))
        else:
            self.stdout.write("No accounts need approval")
